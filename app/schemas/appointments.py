"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    IN_CONSULTATION = "in_consultation"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that do not occupy the doctor's time
INACTIVE_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment."""

    patient_id: int = Field(..., gt=0)
    doctor_id: int = Field(..., gt=0)
    clinic_id: int = Field(..., gt=0)
    room_id: int | None = Field(None, gt=0)
    scheduled_start: datetime
    scheduled_end: datetime
    notes: str | None = Field(None, max_length=1000)
    created_by: int | None = Field(None, gt=0)


class AppointmentUpdate(BaseModel):
    """Schema for rescheduling or editing an existing appointment."""

    doctor_id: int | None = Field(None, gt=0)
    clinic_id: int | None = Field(None, gt=0)
    room_id: int | None = Field(None, gt=0)
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None
    notes: str | None = Field(None, max_length=1000)
    updated_by: int | None = Field(None, gt=0)


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)
    updated_by: int | None = Field(None, gt=0)


class SlotValidationRequest(BaseModel):
    """Schema for checking a doctor's availability without booking."""

    doctor_id: int = Field(..., gt=0)
    scheduled_start: datetime
    scheduled_end: datetime
    exclude_appointment_id: int | None = Field(None, gt=0)


class SlotValidationResponse(BaseModel):
    """Result of a successful availability check."""

    doctor_id: int
    scheduled_start: datetime
    scheduled_end: datetime
    available: bool = True


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    appointment_id: int
    patient_id: int
    doctor_id: int
    clinic_id: int
    room_id: int | None = None
    scheduled_start: datetime
    scheduled_end: datetime
    status: AppointmentStatus
    notes: str | None = None
    created_by: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    patient_id: int | None = None
    doctor_id: int | None = None
    clinic_id: int | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class UpcomingAppointment(BaseModel):
    """Upcoming appointment with display names resolved."""

    appointment_id: int
    scheduled_start: datetime
    scheduled_end: datetime
    status: AppointmentStatus
    patient_id: int
    patient_name: str
    doctor_id: int
    doctor_name: str
    clinic_id: int
    clinic_name: str


class DoctorDayEntry(AppointmentResponse):
    """Appointment on a doctor's daily schedule."""

    patient_name: str


class DoctorDayResponse(BaseModel):
    """A doctor's appointments for one calendar day."""

    doctor_id: int
    day: str
    items: list[DoctorDayEntry]
