from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from rx_companion.utils.clock import normalize_hhmm

Frequency = Literal["QD", "BID", "TID", "QID", "QHS", "QAM", "QPM", "QOD", "PRN"]
Route = Literal["oral", "intramuscular", "intravenous", "inhaled", "sublingual", "topical", "nasal", "ophthalmic"]
DoseUnit = Literal["mg", "ml", "tablet", "capsule", "drop", "spray"]
TimingWhen = Literal["before_meal", "after_meal", "morning", "midday", "evening", "night"]
EventStatus = Literal["scheduled", "taken", "missed", "snoozed"]

ReviewStep = Literal["NEED_REVIEW", "NOTHING_FOUND", "DONE"]

SAFETY_NOTE = (
    "Not medical advice. Parsed plans are a best-effort guess from prescription text. "
    "Always confirm instructions with a doctor/pharmacist."
)

class Dose(BaseModel):
    amount: float = Field(..., gt=0)
    unit: DoseUnit = "tablet"

class DosageInstruction(BaseModel):
    dose: Dose = Field(default_factory=lambda: Dose(amount=1, unit="tablet"))
    frequency: Frequency = "QD"
    times_of_day: Optional[List[str]] = Field(
        default=None,
        description="Explicit HH:MM clock times; override the frequency defaults.",
    )
    when: Optional[List[TimingWhen]] = None
    duration_days: Optional[int] = Field(
        default=None,
        description="How many days the instruction stays active. Null means the full horizon.",
        ge=1,
    )
    prn: bool = False

    @field_validator("times_of_day")
    @classmethod
    def _dedupe_times(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        out = set()
        for raw in v:
            hhmm = normalize_hhmm(raw)
            if hhmm is None:
                raise ValueError(f"invalid clock time {raw!r}, expected HH:MM")
            out.add(hhmm)
        return sorted(out) or None

    @field_validator("when")
    @classmethod
    def _dedupe_when(cls, v: Optional[List[TimingWhen]]) -> Optional[List[TimingWhen]]:
        if not v:
            return None
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def _prn_follows_frequency(self) -> "DosageInstruction":
        self.prn = self.frequency == "PRN"
        return self

class MedicationPlan(BaseModel):
    id: str
    name: str
    strength: Optional[str] = None
    route: Optional[Route] = None
    instructions: List[DosageInstruction] = Field(..., min_length=1)
    notes: Optional[str] = None

class ScheduleEvent(BaseModel):
    id: str
    med_plan_id: str
    at: datetime
    window_mins: Optional[int] = None  # None => never handed to the notifier
    dose: str
    status: EventStatus = "scheduled"

class Reminder(BaseModel):
    notification_id: str
    event_id: str
    plan_id: Optional[str] = None
    trigger_at: datetime
    title: str
    body: str

class ToolResult(BaseModel):
    ok: bool
    mock: bool = True
    details: Dict[str, Any] = Field(default_factory=dict)

# ---- API payloads ----

class ParseRequest(BaseModel):
    text: str

class ParseResponse(BaseModel):
    plans: List[MedicationPlan]
    safety_note: str = SAFETY_NOTE

class ExpandRequest(BaseModel):
    plan: MedicationPlan
    start: Optional[datetime] = None   # defaults to "now" in the configured timezone
    horizon_days: Optional[int] = Field(default=None, ge=0)
    timezone: Optional[str] = None

class ExpandResponse(BaseModel):
    plan_id: str
    events: List[ScheduleEvent]

class ReviewStartRequest(BaseModel):
    text: str
    start: Optional[datetime] = None
    horizon_days: Optional[int] = Field(default=None, ge=0)
    timezone: Optional[str] = None

class ReviewApproveRequest(BaseModel):
    session_id: str
    plans: Optional[List[MedicationPlan]] = None  # edited plans; None keeps the parsed draft

class ReviewResponse(BaseModel):
    session_id: str
    next_step: ReviewStep
    plans: List[MedicationPlan]
    events: List[ScheduleEvent] = []
    reminders: int = 0
    safety_note: str = SAFETY_NOTE

class EventMarkRequest(BaseModel):
    event_id: str
    status: EventStatus
