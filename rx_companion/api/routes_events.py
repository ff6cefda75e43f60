from datetime import date, timedelta
from typing import Optional
from fastapi import APIRouter, HTTPException
from rx_companion.core.schedule_config import SNOOZE_MINUTES
from rx_companion.schemas.models import EventMarkRequest, ScheduleEvent
from rx_companion.services import event_store, notifier
from rx_companion.utils.clock import now_local

router = APIRouter(prefix="/events", tags=["events"])

@router.get("", response_model=list[ScheduleEvent])
def list_events(plan_id: Optional[str] = None, day: Optional[date] = None):
    return event_store.list_events(plan_id=plan_id, day=day)

@router.post("/mark", response_model=ScheduleEvent)
def mark(req: EventMarkRequest):
    ev = event_store.get_event(req.event_id)
    if not ev:
        raise HTTPException(status_code=404, detail="event_id not found")

    event_store.update_event_status(ev.id, req.status)
    notifier.cancel_event(ev.id)

    if req.status == "snoozed":
        event_store.shift_event(ev.id, now_local() + timedelta(minutes=SNOOZE_MINUTES))
        notifier.snooze(ev, SNOOZE_MINUTES)
    elif req.status == "scheduled":
        plan = event_store.get_plan(ev.med_plan_id)
        notifier.schedule_local(ev, plan_name=plan.name if plan else None)

    return ev

@router.delete("/plans/{plan_id}")
def delete_plan(plan_id: str):
    if not event_store.get_plan(plan_id):
        raise HTTPException(status_code=404, detail="plan_id not found")
    cancelled = notifier.cancel_for_plan(plan_id)
    event_store.remove_plan(plan_id)
    return {"plan_id": plan_id, "removed": True, "cancelled_reminders": cancelled}

@router.get("/reminders")
def reminders(plan_id: Optional[str] = None):
    return {"reminders": [r.model_dump(mode="json") for r in notifier.list_reminders(plan_id)]}
