# rx_companion/agent/nodes.py
import logging
from datetime import datetime
from typing import Any, Dict, List
from langgraph.types import interrupt
from rx_companion.agent.state import RxState
from rx_companion.schemas.models import MedicationPlan, ScheduleEvent
from rx_companion.services import event_store, notifier
from rx_companion.services.extraction import parse_prescription_text
from rx_companion.services.planning import expand_plan

logger = logging.getLogger(__name__)

def _audit(state: RxState, event: str, extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
    audit = list(state.get("audit") or [])
    audit.append({"event": event, **(extra or {})})
    return {"audit": audit}

def _plans(state: RxState) -> List[MedicationPlan]:
    return [MedicationPlan(**p) for p in (state.get("plans") or [])]

def parse_node(state: RxState) -> Dict[str, Any]:
    plans = parse_prescription_text(state.get("raw_text") or "")
    next_step = "NEED_REVIEW" if plans else "NOTHING_FOUND"
    return {
        "plans": [p.model_dump(mode="json") for p in plans],
        "next_step": next_step,
        **_audit(state, "parse.done", {"count": len(plans)}),
    }

def route_after_parse(state: RxState) -> str:
    return "review" if state.get("plans") else "nothing_found"

def review_node(state: RxState) -> Dict[str, Any]:
    """
    Pause for human correction of the parsed plans.
    Resume payload: {"plans": [...]} with edited plans, or {} to accept the draft.
    """
    payload = {
        "type": "REVIEW_REQUIRED",
        "session_id": state["session_id"],
        "plans": state.get("plans", []),
        "instructions": "Review names, doses and frequencies, then approve to schedule reminders.",
    }

    resume = interrupt(payload)

    updates: Dict[str, Any] = {}
    edited = resume.get("plans") if isinstance(resume, dict) else None
    if edited:
        # same shape whether parsed or hand-edited; validate before it reaches the expander
        updates["plans"] = [MedicationPlan(**p).model_dump(mode="json") for p in edited]

    updates.update(_audit(state, "review.resumed", {"edited": bool(edited)}))
    return updates

def schedule_node(state: RxState) -> Dict[str, Any]:
    start = datetime.fromisoformat(state["start_iso"])
    horizon = int(state.get("horizon_days") or 0)
    plans = _plans(state)

    all_events: List[ScheduleEvent] = []
    for p in plans:
        events = expand_plan(p, start, horizon)
        event_store.set_events_for_plan(p.id, events)
        all_events.extend(events)
    event_store.upsert_plans(plans)

    all_events = event_store.sort_events(all_events)
    return {
        "events": [e.model_dump(mode="json") for e in all_events],
        **_audit(state, "schedule.done", {"plans": len(plans), "events": len(all_events)}),
    }

def notify_node(state: RxState) -> Dict[str, Any]:
    events = [ScheduleEvent(**e) for e in (state.get("events") or [])]
    executed: Dict[str, Any] = {}

    for p in _plans(state):
        mine = [e for e in events if e.med_plan_id == p.id]
        executed[p.id] = notifier.schedule_plan_events(p, mine).model_dump()

    created = sum(r["details"].get("created", 0) for r in executed.values())
    logger.info("session %s: %d reminders registered", state.get("session_id"), created)
    return {
        "executed": executed,
        "next_step": "DONE",
        **_audit(state, "notify.done", {"reminders": created}),
    }
