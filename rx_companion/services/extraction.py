import hashlib
import logging
import re
from typing import List, Optional

from rx_companion.schemas.models import DosageInstruction, Dose, MedicationPlan
from rx_companion.services.patterns import (
    BULLET_RE,
    DOSE_RE,
    DOSE_UNIT_MAP,
    DURATION_RE,
    FREQUENCY_PATTERNS,
    HEADER_START_RE,
    LOOSE_FREQUENCY_PATTERNS,
    NAME_NOISE_RE,
    PRN_RE,
    ROUTE_PATTERNS,
    STRENGTH_KEYWORD_RE,
    STRENGTH_RE,
    TIME_RE,
    TRAILING_CLAUSE_RE,
    WHEN_PATTERNS,
    WORD_NUMBER_RE,
)
from rx_companion.utils.clock import format_hhmm

logger = logging.getLogger(__name__)

def strip_bullet(line: str) -> str:
    return BULLET_RE.sub("", line or "").strip()

def _to_number(raw: str) -> float:
    return float(raw.replace(",", "."))

def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)

# ---------------------------
# block segmentation
# ---------------------------

def _starts_new_block(line: str) -> bool:
    """
    A line opens a new medication block only if it mentions a strength (or mg/ml)
    AND starts with a letter once bullets are gone. "1 tab 3 times a day" stays a
    continuation; "Melatonin 3 mg — 1 tab" splits even without a blank line.
    """
    if not line:
        return False
    mentions_strength = bool(STRENGTH_RE.search(line) or STRENGTH_KEYWORD_RE.search(line))
    return mentions_strength and bool(HEADER_START_RE.match(strip_bullet(line)))

def collect_blocks(raw: str) -> List[List[str]]:
    blocks: List[List[str]] = []
    current: List[str] = []

    for ln in (raw or "").splitlines():
        ln = ln.strip()
        if not ln:
            # blank (or a run of blanks) closes the current block
            if current:
                blocks.append(current)
                current = []
            continue

        if current and _starts_new_block(ln):
            blocks.append(current)
            current = [ln]
            continue

        current.append(ln)

    if current:
        blocks.append(current)
    return blocks

# ---------------------------
# per-block field extraction
# ---------------------------

def sanitize_name(header: str) -> str:
    if not header:
        return ""

    # "At night: Melatonin 3 mg" -> the part after the colon names the medication
    base = header
    if ":" in header:
        candidate = header.split(":", 1)[1].strip()
        if STRENGTH_RE.search(candidate) or WORD_NUMBER_RE.search(candidate):
            base = candidate

    cleaned = strip_bullet(base)
    cleaned = STRENGTH_RE.sub("", cleaned, count=1)
    cleaned = TRAILING_CLAUSE_RE.sub("", cleaned)
    cleaned = NAME_NOISE_RE.sub("", cleaned)
    return re.sub(r"\s{2,}", " ", cleaned).strip(" ,;:")

def extract_strength(text: str) -> Optional[str]:
    m = STRENGTH_RE.search(text)
    if not m:
        return None
    return f"{format_number(_to_number(m.group(1)))} {m.group(2).lower()}"

def detect_route(text: str) -> Optional[str]:
    return next((value for rx, value in ROUTE_PATTERNS if rx.search(text)), None)

def parse_dose(text: str, header: Optional[str] = None) -> Optional[Dose]:
    # a strength on the header line ("Amoxicillin 500 mg") describes the formulation, not the dose
    header = text if header is None else header
    if STRENGTH_RE.search(header):
        text = STRENGTH_RE.sub(" ", text, count=1)
    m = DOSE_RE.search(text)
    if not m:
        return None

    amount = _to_number(m.group(1))
    surface = m.group(2).lower().rstrip(".")
    unit = DOSE_UNIT_MAP.get(surface)
    if unit is None:
        unit = "mg" if "mg" in surface or "мг" in surface else "ml" if "ml" in surface or "мл" in surface else None
    if unit is None or amount <= 0:
        return None
    return Dose(amount=amount, unit=unit)

def detect_frequency(text: str) -> Optional[str]:
    for rx, value in FREQUENCY_PATTERNS:
        if rx.search(text):
            return value
    for rx, value in LOOSE_FREQUENCY_PATTERNS:
        if rx.search(text):
            return value
    return None

def extract_times(text: str) -> List[str]:
    out = set()
    for m in TIME_RE.finditer(text):
        h, mins = int(m.group(1)), int(m.group(2))
        if 0 <= h <= 23 and 0 <= mins <= 59:
            out.add(format_hhmm(h, mins))
    return sorted(out)

def detect_when(text: str) -> List[str]:
    return [value for rx, value in WHEN_PATTERNS if rx.search(text)]

def parse_duration(text: str) -> Optional[int]:
    m = DURATION_RE.search(text)
    if not m:
        return None
    days = int(m.group(1))
    return days if days > 0 else None

def build_instruction(text: str, header: Optional[str] = None) -> DosageInstruction:
    dose = parse_dose(text, header) or Dose(amount=1, unit="tablet")

    # "as needed" beats any numeric frequency found in the same text
    if PRN_RE.search(text):
        frequency = "PRN"
    else:
        frequency = detect_frequency(text) or "QD"

    return DosageInstruction(
        dose=dose,
        frequency=frequency,
        times_of_day=extract_times(text) or None,
        when=detect_when(text) or None,
        duration_days=parse_duration(text),
    )

# ---------------------------
# ids
# ---------------------------

def _slug(value: str) -> str:
    return re.sub(r"[\W_]+", "-", value.lower()).strip("-")

def make_plan_id(name: str, ordinal: int) -> str:
    base = _slug(name) or f"med-{ordinal + 1}"
    digest = hashlib.sha1(f"{base}-{ordinal}".encode("utf-8")).hexdigest()[:8]
    return f"plan-{base}-{digest}"

# ---------------------------
# public entry point
# ---------------------------

def build_plan_from_block(lines: List[str], ordinal: int) -> Optional[MedicationPlan]:
    normalized = [strip_bullet(ln) for ln in lines]
    normalized = [ln for ln in normalized if ln]
    if not normalized:
        return None

    name = sanitize_name(normalized[0]) or f"Medication {ordinal + 1}"
    plain = " ".join(normalized)

    plan = MedicationPlan(
        id=make_plan_id(name, ordinal),
        name=name,
        strength=extract_strength(plain),
        route=detect_route(plain),
        instructions=[build_instruction(plain, header=normalized[0])],
    )
    logger.debug("parsed block %d -> %s (%s)", ordinal, plan.name, plan.instructions[0].frequency)
    return plan

def parse_prescription_text(raw: str) -> List[MedicationPlan]:
    """
    Best-effort extraction of medication plans from freeform EN/RU prescription text.
    Never raises on content: empty or unparseable input gives an empty list, and missing
    fields fall back to conservative defaults (1 tablet, QD, full horizon).
    """
    if not raw or not raw.strip():
        return []

    plans: List[MedicationPlan] = []
    for ordinal, block in enumerate(collect_blocks(raw)):
        plan = build_plan_from_block(block, ordinal)
        if plan:
            plans.append(plan)
    return plans
