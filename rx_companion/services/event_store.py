import threading
from datetime import date, datetime
from typing import Dict, List, Optional
from rx_companion.schemas.models import EventStatus, MedicationPlan, ScheduleEvent

# In-process store; plans and events are opaque records for whatever persists them.
# FastAPI runs sync routes on a threadpool, so every read-modify-write holds the lock.
MED_PLANS: Dict[str, MedicationPlan] = {}
EVENTS: List[ScheduleEvent] = []
_LOCK = threading.RLock()

def sort_events(events: List[ScheduleEvent]) -> List[ScheduleEvent]:
    return sorted(events, key=lambda e: e.at)

def upsert_plans(plans: List[MedicationPlan]) -> None:
    with _LOCK:
        for p in plans:
            MED_PLANS[p.id] = p

def get_plan(plan_id: str) -> Optional[MedicationPlan]:
    return MED_PLANS.get(plan_id)

def list_plans() -> List[MedicationPlan]:
    with _LOCK:
        return list(MED_PLANS.values())

def remove_plan(plan_id: str) -> bool:
    with _LOCK:
        existed = MED_PLANS.pop(plan_id, None) is not None
        EVENTS[:] = [e for e in EVENTS if e.med_plan_id != plan_id]
    return existed

def set_events_for_plan(plan_id: str, events: List[ScheduleEvent]) -> None:
    with _LOCK:
        retained = [e for e in EVENTS if e.med_plan_id != plan_id]
        EVENTS[:] = sort_events(retained + list(events))

def get_event(event_id: str) -> Optional[ScheduleEvent]:
    with _LOCK:
        return next((e for e in EVENTS if e.id == event_id), None)

def list_events(plan_id: Optional[str] = None, day: Optional[date] = None) -> List[ScheduleEvent]:
    with _LOCK:
        out = list(EVENTS)
    if plan_id:
        out = [e for e in out if e.med_plan_id == plan_id]
    if day:
        out = [e for e in out if e.at.date() == day]
    return out

def update_event_status(event_id: str, status: EventStatus) -> Optional[ScheduleEvent]:
    with _LOCK:
        ev = get_event(event_id)
        if ev:
            ev.status = status
    return ev

def shift_event(event_id: str, new_at: datetime) -> Optional[ScheduleEvent]:
    with _LOCK:
        ev = get_event(event_id)
        if ev:
            ev.at = new_at
            EVENTS[:] = sort_events(EVENTS)
    return ev

def reset_store() -> None:
    with _LOCK:
        MED_PLANS.clear()
        EVENTS.clear()
