import logging
import threading
import uuid
from datetime import timedelta
from typing import Dict, List, Optional

from rx_companion.core.schedule_config import SNOOZE_MINUTES
from rx_companion.schemas.models import MedicationPlan, Reminder, ScheduleEvent, ToolResult
from rx_companion.utils.clock import now_local

logger = logging.getLogger(__name__)

# Mock local-notification registry: notification_id -> Reminder
REMINDERS: Dict[str, Reminder] = {}
_LOCK = threading.RLock()

def _notification_id() -> str:
    return "ntf_" + uuid.uuid4().hex[:10]

def schedule_local(event: ScheduleEvent, plan_name: Optional[str] = None) -> Optional[str]:
    """Register a point-in-time reminder for one event. PRN (no window) and non-scheduled events are refused."""
    if event.window_mins is None:
        logger.warning("event %s has no reminder window (PRN), not scheduling", event.id)
        return None
    if event.status != "scheduled":
        logger.warning("event %s is %s, not scheduling", event.id, event.status)
        return None

    nid = _notification_id()
    with _LOCK:
        REMINDERS[nid] = Reminder(
            notification_id=nid,
            event_id=event.id,
            plan_id=event.med_plan_id,
            trigger_at=event.at,
            title="Medication reminder",
            body=f"Dose {event.dose} for {plan_name or 'your medication'}",
        )
    return nid

def cancel_for_plan(plan_id: str) -> int:
    with _LOCK:
        ids = [nid for nid, r in REMINDERS.items() if r.plan_id == plan_id]
        for nid in ids:
            del REMINDERS[nid]
    if ids:
        logger.info("cancelled %d reminders for plan %s", len(ids), plan_id)
    return len(ids)

def cancel_event(event_id: str) -> int:
    with _LOCK:
        ids = [nid for nid, r in REMINDERS.items() if r.event_id == event_id]
        for nid in ids:
            del REMINDERS[nid]
    return len(ids)

def snooze(event: ScheduleEvent, minutes: int = SNOOZE_MINUTES) -> Optional[str]:
    """Re-register one event's reminder `minutes` from now. PRN (no window) events are refused."""
    if event.window_mins is None:
        logger.warning("event %s has no reminder window (PRN), not snoozing", event.id)
        return None

    nid = _notification_id()
    with _LOCK:
        REMINDERS[nid] = Reminder(
            notification_id=nid,
            event_id=event.id,
            plan_id=event.med_plan_id,
            trigger_at=now_local() + timedelta(minutes=minutes),
            title="Snoozed reminder",
            body=f"Dose {event.dose} rescheduled.",
        )
    logger.info("snoozed event %s for %d minutes", event.id, minutes)
    return nid

def list_reminders(plan_id: Optional[str] = None) -> List[Reminder]:
    with _LOCK:
        out = sorted(REMINDERS.values(), key=lambda r: r.trigger_at)
    return [r for r in out if plan_id is None or r.plan_id == plan_id]

def schedule_plan_events(plan: MedicationPlan, events: List[ScheduleEvent]) -> ToolResult:
    """Cancel-and-reschedule every reminder of one plan. Returns a mock tool result."""
    created = 0
    skipped = 0
    with _LOCK:
        cancelled = cancel_for_plan(plan.id)
        for ev in events:
            if ev.window_mins is None:
                skipped += 1  # PRN: never auto-notify
                continue
            if schedule_local(ev, plan_name=plan.name):
                created += 1
    logger.info("plan %s: %d reminders scheduled, %d skipped", plan.id, created, skipped)
    return ToolResult(ok=True, mock=True, details={
        "plan_id": plan.id, "created": created, "cancelled": cancelled, "skipped": skipped,
    })

def reset_reminders() -> None:
    with _LOCK:
        REMINDERS.clear()
