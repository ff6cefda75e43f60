# rx_companion/api/routes_review.py
import uuid
from fastapi import APIRouter, HTTPException
from langgraph.types import Command
from rx_companion.agent.graph import rx_graph, session_config
from rx_companion.api.routes_rx import resolve_horizon
from rx_companion.schemas.models import (
    MedicationPlan, ScheduleEvent,
    ReviewStartRequest, ReviewApproveRequest, ReviewResponse,
)
from rx_companion.services.planning import expand_plans
from rx_companion.utils.clock import ensure_aware, now_local

router = APIRouter(prefix="/review", tags=["review"])

def _waiting_for_review(snap) -> bool:
    return "review" in (snap.next or ())

@router.post("/start", response_model=ReviewResponse)
def review_start(req: ReviewStartRequest):
    horizon = resolve_horizon(req.horizon_days)
    start = ensure_aware(req.start, req.timezone) if req.start else now_local(req.timezone)

    session_id = "rx_" + uuid.uuid4().hex
    initial_state = {
        "session_id": session_id,
        "timezone": req.timezone or "",
        "raw_text": req.text,
        "start_iso": start.isoformat(),
        "horizon_days": horizon,
        "audit": [],
    }

    rx_graph.invoke(initial_state, config=session_config(session_id))
    snap = rx_graph.get_state(session_config(session_id))
    state = snap.values or {}

    plans = [MedicationPlan(**p) for p in state.get("plans", [])]
    if not _waiting_for_review(snap):
        return ReviewResponse(session_id=session_id, next_step="NOTHING_FOUND", plans=plans)

    # preview only; nothing is stored or notified until approve
    return ReviewResponse(
        session_id=session_id,
        next_step="NEED_REVIEW",
        plans=plans,
        events=expand_plans(plans, start, horizon),
    )

@router.post("/approve", response_model=ReviewResponse)
def review_approve(req: ReviewApproveRequest):
    config = session_config(req.session_id)
    snap = rx_graph.get_state(config)
    if not snap.values:
        raise HTTPException(status_code=404, detail="session_id not found")
    if not _waiting_for_review(snap):
        raise HTTPException(status_code=409, detail="Session is not waiting for review.")

    resume_payload = {}
    if req.plans:
        resume_payload["plans"] = [p.model_dump(mode="json") for p in req.plans]

    final_state = rx_graph.invoke(Command(resume=resume_payload), config=config)

    executed = final_state.get("executed", {}) or {}
    reminders = sum(int(r.get("details", {}).get("created", 0)) for r in executed.values())
    return ReviewResponse(
        session_id=req.session_id,
        next_step="DONE",
        plans=[MedicationPlan(**p) for p in final_state.get("plans", [])],
        events=[ScheduleEvent(**e) for e in final_state.get("events", [])],
        reminders=reminders,
    )

@router.get("/audit")
def review_audit(session_id: str):
    snap = rx_graph.get_state(session_config(session_id))
    if not snap.values:
        raise HTTPException(status_code=404, detail="session_id not found")
    return {"session_id": session_id, "audit": snap.values.get("audit", [])}
