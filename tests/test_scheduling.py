"""Tests for booking rules that need no database."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from app.core.exceptions import (
    DoubleBookingException,
    InvalidRangeException,
    InvalidStatusTransitionException,
)
from app.core.scheduling import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    check_slot,
    ensure_transition_allowed,
    find_conflict,
    is_active,
    ranges_overlap,
    to_naive_utc,
)
from app.schemas.appointments import AppointmentStatus

DAY = datetime(2025, 9, 22)


def at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


def booking(appointment_id: int, start: datetime, end: datetime, status: str = "scheduled") -> dict:
    return {
        "appointment_id": appointment_id,
        "scheduled_start": start,
        "scheduled_end": end,
        "status": status,
    }


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        (at(9, 15), at(9, 45), True),  # starts inside
        (at(8, 45), at(9, 15), True),  # ends inside
        (at(8, 0), at(11, 0), True),  # encloses
        (at(9, 5), at(9, 10), True),  # enclosed
        (at(9, 0), at(9, 30), True),  # identical
        (at(9, 30), at(10, 0), False),  # starts at existing end
        (at(8, 30), at(9, 0), False),  # ends at existing start
        (at(11, 0), at(12, 0), False),  # disjoint
    ],
)
def test_ranges_overlap_half_open(start: datetime, end: datetime, expected: bool) -> None:
    """Intervals overlap only when they share time; touching ends are free."""
    assert ranges_overlap(start, end, at(9, 0), at(9, 30)) is expected


def test_find_conflict_ignores_inactive_statuses() -> None:
    existing = [
        booking(1, at(9, 0), at(9, 30), "cancelled"),
        booking(2, at(9, 0), at(9, 30), "no_show"),
    ]
    assert find_conflict(at(9, 0), at(9, 30), existing) is None


@pytest.mark.parametrize(
    "status",
    ["scheduled", "confirmed", "checked_in", "in_consultation", "completed"],
)
def test_find_conflict_active_statuses_block(status: str) -> None:
    existing = [booking(7, at(9, 0), at(9, 30), status)]
    conflict = find_conflict(at(9, 15), at(9, 45), existing)
    assert conflict is not None
    assert conflict["appointment_id"] == 7


def test_find_conflict_excludes_given_appointment() -> None:
    existing = [booking(3, at(9, 0), at(9, 30))]
    assert find_conflict(at(9, 10), at(9, 40), existing, exclude_appointment_id=3) is None


def test_check_slot_reports_conflicting_id() -> None:
    existing = [
        booking(1, at(8, 0), at(8, 30)),
        booking(2, at(9, 0), at(9, 30)),
    ]

    with pytest.raises(DoubleBookingException) as exc_info:
        check_slot(1, at(9, 15), at(9, 45), existing)

    assert exc_info.value.conflicting_appointment_id == 2
    assert exc_info.value.doctor_id == 1
    assert exc_info.value.status_code == 409


def test_check_slot_accepts_back_to_back() -> None:
    existing = [booking(1, at(9, 0), at(9, 30))]
    check_slot(1, at(9, 30), at(10, 0), existing)


@pytest.mark.parametrize(
    ("start", "end"),
    [
        (at(10, 0), at(10, 0)),
        (at(10, 0), at(9, 0)),
    ],
)
def test_check_slot_rejects_empty_range(start: datetime, end: datetime) -> None:
    with pytest.raises(InvalidRangeException):
        check_slot(1, start, end, [])


def test_invalid_range_checked_before_conflicts() -> None:
    existing = [booking(1, at(9, 0), at(9, 30))]
    with pytest.raises(InvalidRangeException):
        check_slot(1, at(9, 20), at(9, 10), existing)


def test_to_naive_utc_converts_aware_datetimes() -> None:
    nairobi = timezone(timedelta(hours=3))
    assert to_naive_utc(datetime(2025, 9, 22, 12, 0, tzinfo=nairobi)) == datetime(2025, 9, 22, 9, 0)
    assert to_naive_utc(datetime(2025, 9, 22, 9, 0, tzinfo=UTC)) == datetime(2025, 9, 22, 9, 0)
    assert to_naive_utc(datetime(2025, 9, 22, 9, 0)) == datetime(2025, 9, 22, 9, 0)


def test_is_active() -> None:
    assert is_active("scheduled")
    assert is_active(AppointmentStatus.COMPLETED)
    assert not is_active("cancelled")
    assert not is_active(AppointmentStatus.NO_SHOW)


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        ("scheduled", "confirmed"),
        ("scheduled", "checked_in"),
        ("scheduled", "cancelled"),
        ("confirmed", "no_show"),
        ("checked_in", "in_consultation"),
        ("in_consultation", "completed"),
    ],
)
def test_allowed_transitions(current: str, requested: str) -> None:
    ensure_transition_allowed(current, requested)


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        ("completed", "scheduled"),
        ("cancelled", "scheduled"),
        ("no_show", "confirmed"),
        ("scheduled", "completed"),
        ("in_consultation", "cancelled"),
        ("confirmed", "scheduled"),
    ],
)
def test_forbidden_transitions(current: str, requested: str) -> None:
    with pytest.raises(InvalidStatusTransitionException) as exc_info:
        ensure_transition_allowed(current, requested)

    assert exc_info.value.details == {"current_status": current, "requested_status": requested}


def test_terminal_statuses() -> None:
    assert TERMINAL_STATUSES == {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }
    assert set(ALLOWED_TRANSITIONS) == set(AppointmentStatus)
