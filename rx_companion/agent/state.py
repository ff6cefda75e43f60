from typing import Any, Dict, List, TypedDict

class RxState(TypedDict, total=False):
    # identity (session_id doubles as LangGraph thread_id)
    session_id: str
    timezone: str

    # inputs
    raw_text: str
    start_iso: str       # ISO8601 with offset; day 0 of the horizon
    horizon_days: int

    # outputs
    plans: List[Dict[str, Any]]    # MedicationPlan dicts (parsed, then reviewed)
    events: List[Dict[str, Any]]   # ScheduleEvent dicts, chronological
    executed: Dict[str, Any]       # plan_id -> notifier ToolResult
    next_step: str
    audit: List[Dict[str, Any]]
