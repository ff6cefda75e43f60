# rx_companion/services/patterns.py
"""
Bilingual (English/Russian) keyword tables used by the prescription parser.

Every table is an ordered list of (compiled pattern, canonical value) pairs and is
evaluated first-match-wins, so coverage can be extended by adding rows without
touching the extraction code. Nothing here is mutated after import.
"""
import re
from typing import Dict, List, Tuple

_I = re.IGNORECASE

# "500 mg", "2,5 мл", "0.5ml"
STRENGTH_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s?(mg|мг|ml|мл)", _I)
STRENGTH_KEYWORD_RE = re.compile(r"mg|мг|ml|мл", _I)

DURATION_RE = re.compile(r"\b(\d+)\s?(?:days?|сут(?:ок|ки)?|дн(?:ей|я)?)", _I)

# Bilingual dose-unit surface forms; a unit must not run on into another word.
DOSE_UNITS = (
    r"(?:таб(?:летка|летки|леток|\.)?|табл\.?|tab(?:let)?s?"
    r"|капс(?:ула|улы|ул)?|caps?(?:ule)?s?"
    r"|drops?|капл(?:я|и|ь)"
    r"|sprays?|спрей(?:я|ев)?"
    r"|ml|мл|mg|мг)(?![^\W\d_])"
)

DOSE_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(" + DOSE_UNITS + ")", _I)

# "08:00", "8.30"; "2.50 mg" and "1.25 tabs" are quantities, not times
TIME_RE = re.compile(
    r"(?<!\d)(?<!\d[.,])(\d{1,2})[:.](\d{2})(?!\d)(?![.,]\d)(?!\s*" + DOSE_UNITS + ")",
    _I,
)

# Leading bullets and "1." / "2)" numbering; a bare "1 tab" keeps its number.
BULLET_RE = re.compile(r"^(?:\s*(?:[-•–—*·]+|\d+[.)](?=\s)))+\s*")

HEADER_START_RE = re.compile(r"^[^\W\d_]")
WORD_NUMBER_RE = re.compile(r"[^\W\d_]+\s+\d+")

# Strip from the name: a dash-led trailing clause, and instructional words.
TRAILING_CLAUSE_RE = re.compile(r"(?:\s+-|[–—]).*$")
NAME_NOISE_RE = re.compile(r"\b(?:take|принимать|at night|утром|вечером|ночью)\b", _I)

PRN_RE = re.compile(r"\b(?:prn|as needed|по\s+(?:требованию|необходимости))\b", _I)

FREQUENCY_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\b(?:qd|once daily|1\s*(?:time a day|раз(?:а)? в день)|ежедневно)\b", _I), "QD"),
    (re.compile(r"\b(?:bid|2x/?day|2\s*(?:times a day|раза? в день|р/?д))\b", _I), "BID"),
    (re.compile(r"\b(?:tid|3x/?day|3\s*(?:times a day|раза? в день|р/?д))\b", _I), "TID"),
    (re.compile(r"\b(?:qid|4x/?day|4\s*(?:times a day|раза? в день|р/?д))\b", _I), "QID"),
    (re.compile(r"\b(?:qhs|at\s+night|на\s+ночь)\b", _I), "QHS"),
    (re.compile(r"\b(?:qam|in\s+the\s+morning|утром)\b", _I), "QAM"),
    (re.compile(r"\b(?:qpm|in\s+the\s+evening|вечером)\b", _I), "QPM"),
    (re.compile(r"\b(?:every other day|через день)\b", _I), "QOD"),
    (PRN_RE, "PRN"),
]

# Second pass, only when nothing above matched.
LOOSE_FREQUENCY_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\b(?:four times|четыре раза)\b", _I), "QID"),
    (re.compile(r"\b(?:three times|thrice|три раза)\b", _I), "TID"),
    (re.compile(r"\b(?:twice|два раза)\b", _I), "BID"),
    (re.compile(r"\b(?:once|один раз)\b", _I), "QD"),
]

WHEN_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"before (?:meals?|food)|до\s+еды", _I), "before_meal"),
    (re.compile(r"after (?:meals?|food)|после\s+еды", _I), "after_meal"),
    (re.compile(r"\bmorning\b|\bутром\b", _I), "morning"),
    (re.compile(r"\b(?:noon|midday)\b|\bдн[её]м\b", _I), "midday"),
    (re.compile(r"\bevening\b|\bвечером\b", _I), "evening"),
    (re.compile(r"\bnight\b|\bночью\b|\bна\s+ночь\b", _I), "night"),
]

ROUTE_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\b(?:po|per os|by mouth|orally|внутрь)\b", _I), "oral"),
    (re.compile(r"\b(?:im|intramuscular(?:ly)?|в/м|внутримышечно)\b", _I), "intramuscular"),
    (re.compile(r"\b(?:iv|intravenous(?:ly)?|в/в|внутривенно)\b", _I), "intravenous"),
    (re.compile(r"\b(?:inh|inhal(?:e|ed|er|ation)|ингаляц\w*)\b", _I), "inhaled"),
    (re.compile(r"\b(?:sl|sublingual(?:ly)?|под язык)\b", _I), "sublingual"),
    (re.compile(r"\b(?:topical(?:ly)?|наружно)\b", _I), "topical"),
    (re.compile(r"\b(?:nasal|intranasal|в нос|спрей)\b", _I), "nasal"),
    (re.compile(r"\b(?:ophthalmic|eye drops|глазные)\b", _I), "ophthalmic"),
]

# Surface form (lowercased, trailing dot removed) -> canonical dose unit.
DOSE_UNIT_MAP: Dict[str, str] = {
    "таб": "tablet", "табл": "tablet", "таблетка": "tablet", "таблетки": "tablet", "таблеток": "tablet",
    "tab": "tablet", "tabs": "tablet", "tablet": "tablet", "tablets": "tablet",
    "капс": "capsule", "капсула": "capsule", "капсулы": "capsule", "капсул": "capsule",
    "cap": "capsule", "caps": "capsule", "capsule": "capsule", "capsules": "capsule",
    "drop": "drop", "drops": "drop", "капля": "drop", "капли": "drop", "капль": "drop",
    "spray": "spray", "sprays": "spray", "спрей": "spray", "спрея": "spray", "спреев": "spray",
    "ml": "ml", "мл": "ml",
    "mg": "mg", "мг": "mg",
}
