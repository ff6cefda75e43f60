import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from rx_companion.core.schedule_config import DEFAULT_WINDOW_MINS
from rx_companion.schemas.models import DosageInstruction, MedicationPlan, ScheduleEvent
from rx_companion.services.extraction import format_number
from rx_companion.utils.clock import at_day_offset, ensure_aware, parse_hhmm

logger = logging.getLogger(__name__)

DEFAULT_TIMES: Dict[str, Tuple[str, ...]] = {
    "QD": ("09:00",),
    "BID": ("08:00", "20:00"),
    "TID": ("08:00", "14:00", "20:00"),
    "QID": ("06:00", "12:00", "18:00", "22:00"),
    "QHS": ("22:30",),
    "QAM": ("08:00",),
    "QPM": ("20:00",),
    "QOD": ("09:00",),
    "PRN": (),  # as-needed => no fixed reminders
}

# canonical unit -> (singular, plural) label
_UNIT_LABELS: Dict[str, Tuple[str, str]] = {
    "tablet": ("tab", "tabs"),
    "capsule": ("cap", "caps"),
    "drop": ("drop", "drops"),
    "spray": ("spray", "sprays"),
    "mg": ("mg", "mg"),
    "ml": ("ml", "ml"),
}

def dose_label(instruction: DosageInstruction) -> str:
    amount = instruction.dose.amount
    singular, plural = _UNIT_LABELS.get(instruction.dose.unit, (instruction.dose.unit, instruction.dose.unit))
    return f"{format_number(amount)} {singular if amount == 1 else plural}"

def times_for_instruction(frequency: str, times_of_day: Optional[List[str]] = None) -> List[str]:
    if times_of_day:
        return sorted(set(times_of_day))
    return list(DEFAULT_TIMES.get((frequency or "").upper().strip(), DEFAULT_TIMES["QD"]))

def include_day(frequency: str, day_offset: int) -> bool:
    # every-other-day counts from the start day, not from a fixed calendar day
    if frequency == "QOD":
        return day_offset % 2 == 0
    return True

def event_id(plan_id: str, instruction_index: int, day_offset: int, hhmm: str) -> str:
    return f"{plan_id}-{instruction_index}-{day_offset}-{hhmm.replace(':', '')}"

def expand_plan(
    plan: MedicationPlan,
    start: datetime,
    horizon_days: int,
    window_mins: int = DEFAULT_WINDOW_MINS,
) -> List[ScheduleEvent]:
    """
    Turn one plan into concrete reminder events over `horizon_days` days from the
    calendar day of `start`. Output is day-major within each instruction, instructions
    in plan order. Ids and instants depend only on the inputs, so re-expanding the same
    plan gives the same events (callers cancel-and-reschedule by id).
    """
    start = ensure_aware(start)
    events: List[ScheduleEvent] = []

    for idx, ins in enumerate(plan.instructions):
        times = times_for_instruction(ins.frequency, ins.times_of_day)
        if ins.frequency == "PRN" and not times:
            continue

        clock: List[Tuple[str, int, int]] = []
        for hhmm in times:
            parsed = parse_hhmm(hhmm)
            if parsed is None:
                logger.warning("plan %s: dropping malformed clock time %r", plan.id, hhmm)
                continue
            clock.append((hhmm, *parsed))

        duration_limit = ins.duration_days if ins.duration_days is not None else horizon_days
        label = dose_label(ins)
        window = None if ins.frequency == "PRN" else window_mins

        for day in range(max(horizon_days, 0)):
            if day >= duration_limit:
                break
            if not include_day(ins.frequency, day):
                continue
            for hhmm, h, m in clock:
                events.append(ScheduleEvent(
                    id=event_id(plan.id, idx, day, hhmm),
                    med_plan_id=plan.id,
                    at=at_day_offset(start, day, h, m),
                    window_mins=window,
                    dose=label,
                    status="scheduled",
                ))

    logger.debug("expanded plan %s over %d days -> %d events", plan.id, horizon_days, len(events))
    return events

def expand_plans(plans: List[MedicationPlan], start: datetime, horizon_days: int) -> List[ScheduleEvent]:
    """All plans' events in one chronologically sorted list (stable for equal instants)."""
    out: List[ScheduleEvent] = []
    for p in plans:
        out.extend(expand_plan(p, start, horizon_days))
    return sorted(out, key=lambda e: e.at)
