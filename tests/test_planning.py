"""Schedule expansion tests."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from rx_companion.schemas.models import DosageInstruction, Dose, MedicationPlan
from rx_companion.services.extraction import parse_prescription_text
from rx_companion.services.planning import dose_label, expand_plan, expand_plans, times_for_instruction

START = datetime(2026, 3, 2, 15, 45, tzinfo=timezone.utc)


def _plan(plan_id: str = "plan-x", **instruction) -> MedicationPlan:
    return MedicationPlan(id=plan_id, name="X", instructions=[DosageInstruction(**instruction)])


def _day(event_id: str) -> int:
    return int(event_id.split("-")[-2])


def test_qd_emits_one_event_per_day_from_start_of_day():
    events = expand_plan(_plan(frequency="QD"), START, 7)
    assert len(events) == 7
    assert events[0].at == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    assert events[-1].at == datetime(2026, 3, 8, 9, 0, tzinfo=timezone.utc)
    assert all(e.status == "scheduled" and e.window_mins == 30 for e in events)
    assert all(e.med_plan_id == "plan-x" for e in events)


def test_qod_keeps_even_day_offsets_only():
    events = expand_plan(_plan(frequency="QOD"), START, 7)
    assert sorted({_day(e.id) for e in events}) == [0, 2, 4, 6]
    assert len(events) == 4


@pytest.mark.parametrize("duration", [None, 1, 5])
def test_prn_without_times_produces_nothing(duration):
    assert expand_plan(_plan(frequency="PRN", duration_days=duration), START, 30) == []


def test_prn_with_explicit_times_is_not_auto_notified():
    events = expand_plan(_plan(frequency="PRN", times_of_day=["12:00"]), START, 3)
    assert len(events) == 3
    assert all(e.window_mins is None for e in events)


def test_duration_caps_days():
    events = expand_plan(_plan(frequency="QD", duration_days=3), START, 7)
    assert sorted({_day(e.id) for e in events}) == [0, 1, 2]


def test_duration_longer_than_horizon_is_bounded_by_horizon():
    events = expand_plan(_plan(frequency="BID", duration_days=30), START, 2)
    assert len(events) == 4


def test_zero_horizon_yields_nothing():
    assert expand_plan(_plan(frequency="TID"), START, 0) == []


def test_explicit_times_override_defaults():
    plan = _plan(frequency="QD", times_of_day=["20:00", "8:00", "08:00"])
    assert plan.instructions[0].times_of_day == ["08:00", "20:00"]
    events = expand_plan(plan, START, 2)
    assert [e.at.strftime("%H:%M") for e in events] == ["08:00", "20:00", "08:00", "20:00"]


@pytest.mark.parametrize("frequency, expected", [
    ("QD", ["09:00"]),
    ("BID", ["08:00", "20:00"]),
    ("TID", ["08:00", "14:00", "20:00"]),
    ("QID", ["06:00", "12:00", "18:00", "22:00"]),
    ("QHS", ["22:30"]),
    ("QAM", ["08:00"]),
    ("QPM", ["20:00"]),
    ("QOD", ["09:00"]),
    ("PRN", []),
])
def test_default_times(frequency, expected):
    assert times_for_instruction(frequency) == expected


def test_event_ids_are_deterministic_and_unique():
    plan = _plan(frequency="QID")
    first = expand_plan(plan, START, 7)
    second = expand_plan(plan, START, 7)
    assert first == second
    ids = [e.id for e in first]
    assert len(ids) == len(set(ids)) == 28
    assert ids[0] == "plan-x-0-0-0600"


def test_instructions_are_emitted_in_plan_order_day_major():
    plan = MedicationPlan(id="p", name="Two rules", instructions=[
        DosageInstruction(frequency="QAM"),
        DosageInstruction(frequency="QPM", dose=Dose(amount=2, unit="tablet")),
    ])
    events = expand_plan(plan, START, 2)
    assert [e.id for e in events] == ["p-0-0-0800", "p-0-1-0800", "p-1-0-2000", "p-1-1-2000"]
    assert [e.dose for e in events] == ["1 tab", "1 tab", "2 tabs", "2 tabs"]


def test_naive_start_uses_configured_timezone():
    events = expand_plan(_plan(frequency="QD"), datetime(2026, 3, 2, 10, 0), 1)
    assert events[0].at.tzinfo is not None
    assert events[0].at.utcoffset().total_seconds() == 0


def test_wall_clock_time_survives_dst_change():
    berlin = ZoneInfo("Europe/Berlin")
    events = expand_plan(_plan(frequency="QD"), datetime(2026, 3, 28, 7, 0, tzinfo=berlin), 3)
    assert [e.at.hour for e in events] == [9, 9, 9]
    assert events[0].at.utcoffset() != events[2].at.utcoffset()


def test_malformed_time_on_unvalidated_plan_is_dropped():
    ins = DosageInstruction.model_construct(
        dose=Dose(amount=1, unit="tablet"),
        frequency="QD",
        times_of_day=["99:99", "08:00"],
        when=None,
        duration_days=None,
        prn=False,
    )
    plan = MedicationPlan.model_construct(id="raw", name="raw", instructions=[ins], strength=None, route=None, notes=None)
    events = expand_plan(plan, START, 2)
    assert [e.id for e in events] == ["raw-0-0-0800", "raw-0-1-0800"]


@pytest.mark.parametrize("amount, unit, label", [
    (1, "tablet", "1 tab"),
    (2, "tablet", "2 tabs"),
    (1, "capsule", "1 cap"),
    (2, "capsule", "2 caps"),
    (3, "drop", "3 drops"),
    (1, "spray", "1 spray"),
    (250, "mg", "250 mg"),
    (2.5, "ml", "2.5 ml"),
])
def test_dose_label_pluralisation(amount, unit, label):
    assert dose_label(DosageInstruction(dose=Dose(amount=amount, unit=unit))) == label


def test_canonical_scenario_end_to_end(sample_text):
    amox, mel = parse_prescription_text(sample_text)

    events = expand_plan(amox, START, 7)
    assert len(events) == 21
    assert {e.at.strftime("%H:%M") for e in events} == {"08:00", "14:00", "20:00"}
    assert {e.dose for e in events} == {"1 tab"}

    events = expand_plan(mel, START, 7)
    assert len(events) == 7
    assert {e.at.strftime("%H:%M") for e in events} == {"22:30"}
    assert {e.dose for e in events} == {"1 tab"}

    # duration of 7 days wins over a longer horizon
    assert len(expand_plan(amox, START, 14)) == 21


def test_expand_plans_sorts_across_plans(sample_text):
    events = expand_plans(parse_prescription_text(sample_text), START, 2)
    assert len(events) == 8
    assert [e.at for e in events] == sorted(e.at for e in events)
    assert events[3].at.strftime("%H:%M") == "22:30"


# ---------------------------
# validation boundary
# ---------------------------

def test_plan_requires_an_instruction():
    with pytest.raises(ValidationError):
        MedicationPlan(id="p", name="p", instructions=[])


def test_dose_amount_must_be_positive():
    with pytest.raises(ValidationError):
        Dose(amount=0, unit="tablet")


def test_invalid_clock_time_is_rejected():
    with pytest.raises(ValidationError):
        DosageInstruction(times_of_day=["25:00"])


def test_prn_flag_follows_frequency():
    assert DosageInstruction(frequency="PRN", prn=False).prn is True
    assert DosageInstruction(frequency="QD", prn=True).prn is False
