"""Booking rules: time range checks, overlap detection and status transitions.

These functions hold no database state. The appointment service feeds them
rows it has read (under the doctor's lock) and raises what they raise.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from app.core.exceptions import (
    DoubleBookingException,
    InvalidRangeException,
    InvalidStatusTransitionException,
)
from app.schemas.appointments import INACTIVE_STATUSES, AppointmentStatus

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CHECKED_IN,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.CHECKED_IN,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CHECKED_IN: frozenset(
        {
            AppointmentStatus.IN_CONSULTATION,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.IN_CONSULTATION: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Only appointments that have not started may move in time or change doctor
RESCHEDULABLE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


def to_naive_utc(value: datetime) -> datetime:
    """Store timestamps as naive UTC; aware inputs are converted first."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def ensure_valid_range(start: datetime, end: datetime) -> None:
    """
    Check that a booking window is non-empty.

    Raises:
        InvalidRangeException: If start is not strictly before end
    """
    if start >= end:
        raise InvalidRangeException(start, end)


def ranges_overlap(
    start: datetime,
    end: datetime,
    other_start: datetime,
    other_end: datetime,
) -> bool:
    """Half-open interval overlap: touching endpoints do not overlap."""
    return start < other_end and end > other_start


def is_active(status: str | AppointmentStatus) -> bool:
    """Whether an appointment with this status occupies the doctor's time."""
    return AppointmentStatus(status) not in INACTIVE_STATUSES


def find_conflict(
    start: datetime,
    end: datetime,
    existing: Iterable[Mapping[str, Any]],
    exclude_appointment_id: int | None = None,
) -> Mapping[str, Any] | None:
    """
    Find the first active appointment overlapping the candidate window.

    Args:
        start: Candidate start
        end: Candidate end
        existing: The doctor's appointments (mappings with appointment_id,
            scheduled_start, scheduled_end and status)
        exclude_appointment_id: Appointment to ignore, used when re-checking
            an appointment against its own doctor's schedule

    Returns:
        The conflicting appointment, or None when the slot is free
    """
    for appointment in existing:
        if appointment["appointment_id"] == exclude_appointment_id:
            continue
        if not is_active(appointment["status"]):
            continue
        if ranges_overlap(
            start,
            end,
            appointment["scheduled_start"],
            appointment["scheduled_end"],
        ):
            return appointment
    return None


def check_slot(
    doctor_id: int,
    start: datetime,
    end: datetime,
    existing: Iterable[Mapping[str, Any]],
    exclude_appointment_id: int | None = None,
) -> None:
    """
    Admit or reject a candidate booking for a doctor.

    Raises:
        InvalidRangeException: If start is not before end
        DoubleBookingException: If an active appointment overlaps the window
    """
    ensure_valid_range(start, end)
    conflict = find_conflict(start, end, existing, exclude_appointment_id)
    if conflict is not None:
        raise DoubleBookingException(doctor_id, conflict["appointment_id"])


def ensure_transition_allowed(
    current: str | AppointmentStatus,
    requested: str | AppointmentStatus,
) -> None:
    """
    Check a status change against the appointment lifecycle.

    Raises:
        InvalidStatusTransitionException: If requested is not reachable from current
    """
    current = AppointmentStatus(current)
    requested = AppointmentStatus(requested)
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransitionException(current.value, requested.value)
