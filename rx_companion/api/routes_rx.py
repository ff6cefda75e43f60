# rx_companion/api/routes_rx.py
from fastapi import APIRouter, HTTPException
from rx_companion.core.schedule_config import DEFAULT_HORIZON_DAYS, MAX_HORIZON_DAYS
from rx_companion.schemas.models import ExpandRequest, ExpandResponse, ParseRequest, ParseResponse
from rx_companion.services.extraction import parse_prescription_text
from rx_companion.services.planning import expand_plan
from rx_companion.utils.clock import ensure_aware, now_local

router = APIRouter(prefix="/rx", tags=["rx"])

def resolve_horizon(horizon_days: int | None) -> int:
    horizon = DEFAULT_HORIZON_DAYS if horizon_days is None else horizon_days
    if horizon > MAX_HORIZON_DAYS:
        raise HTTPException(status_code=422, detail=f"horizon_days must be <= {MAX_HORIZON_DAYS}")
    return horizon

@router.post("/parse", response_model=ParseResponse)
def rx_parse(req: ParseRequest):
    return ParseResponse(plans=parse_prescription_text(req.text))

@router.post("/expand", response_model=ExpandResponse)
def rx_expand(req: ExpandRequest):
    horizon = resolve_horizon(req.horizon_days)
    start = ensure_aware(req.start, req.timezone) if req.start else now_local(req.timezone)
    return ExpandResponse(plan_id=req.plan.id, events=expand_plan(req.plan, start, horizon))
