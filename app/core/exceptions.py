"""Custom application exceptions."""

from datetime import datetime
from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", details: dict[str, Any] | None = None):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, details=details)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, details=details)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, details=details)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error", details: dict[str, Any] | None = None):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422, details=details)


class ReferenceNotFoundException(NotFoundException):
    """A referenced patient, doctor, clinic, room, user or service does not exist."""

    def __init__(self, entity: str, reference_id: int):
        """Initialize with the missing entity name and id."""
        self.entity = entity
        self.reference_id = reference_id
        super().__init__(
            f"{entity.capitalize()} {reference_id} does not exist",
            details={"entity": entity, "reference_id": reference_id},
        )


class InvalidRangeException(ValidationException):
    """Scheduled start is not strictly before scheduled end."""

    def __init__(self, start: datetime, end: datetime):
        """Initialize with the rejected range."""
        self.start = start
        self.end = end
        super().__init__(
            "Scheduled start must be before scheduled end",
            details={"scheduled_start": start.isoformat(), "scheduled_end": end.isoformat()},
        )


class DoubleBookingException(ConflictException):
    """The doctor already has an active appointment overlapping the requested range."""

    def __init__(self, doctor_id: int, conflicting_appointment_id: int):
        """Initialize with the doctor and the appointment that blocks the slot."""
        self.doctor_id = doctor_id
        self.conflicting_appointment_id = conflicting_appointment_id
        super().__init__(
            "Doctor already has an overlapping appointment",
            details={
                "doctor_id": doctor_id,
                "conflicting_appointment_id": conflicting_appointment_id,
            },
        )


class InvalidStatusTransitionException(ConflictException):
    """Appointment status change not permitted from the current status."""

    def __init__(self, current: str, requested: str):
        """Initialize with the current and requested statuses."""
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change appointment status from '{current}' to '{requested}'",
            details={"current_status": current, "requested_status": requested},
        )
