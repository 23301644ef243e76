"""Appointment endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query, status

from app.dependencies import Appointments, Audit
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    SlotValidationRequest,
    SlotValidationResponse,
    UpcomingAppointment,
)
from app.schemas.audit import AuditLogResponse

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    service: Appointments,
) -> AppointmentResponse:
    """
    Book an appointment after checking the doctor's availability.

    Args:
        data: Appointment creation data
        service: Appointment service

    Returns:
        Created appointment

    Raises:
        DoubleBookingException: 409 with the conflicting appointment id
        InvalidRangeException: 422 if start is not before end
        ReferenceNotFoundException: 404 if a referenced row is missing
    """
    return await service.create_appointment(data)


@router.post(
    "/validate",
    response_model=SlotValidationResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Check a doctor's availability",
)
async def validate_slot(
    data: SlotValidationRequest,
    service: Appointments,
) -> SlotValidationResponse:
    """
    Check whether a doctor is free in a time window without booking it.

    Args:
        data: Doctor, window and optional appointment to ignore
        service: Appointment service

    Returns:
        Availability confirmation
    """
    await service.validate_slot(
        data.doctor_id,
        data.scheduled_start,
        data.scheduled_end,
        data.exclude_appointment_id,
    )
    return SlotValidationResponse(
        doctor_id=data.doctor_id,
        scheduled_start=data.scheduled_start,
        scheduled_end=data.scheduled_end,
    )


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    service: Appointments,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    patient_id: int | None = Query(None),
    doctor_id: int | None = Query(None),
    clinic_id: int | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments with filtering.

    Args:
        service: Appointment service
        status_filter: Filter by status
        patient_id: Filter by patient ID
        doctor_id: Filter by doctor ID
        clinic_id: Filter by clinic ID
        from_date: Earliest start
        to_date: Latest start
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        status=status_filter,
        patient_id=patient_id,
        doctor_id=doctor_id,
        clinic_id=clinic_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    return await service.list_appointments(filters)


@router.get(
    "/upcoming",
    response_model=list[UpcomingAppointment],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List upcoming appointments",
)
async def list_upcoming_appointments(
    service: Appointments,
    clinic_id: int | None = Query(None),
    limit: int | None = Query(None, ge=1, le=500),
) -> list[UpcomingAppointment]:
    """List appointments starting from now, with patient, doctor and clinic names."""
    return await service.list_upcoming(clinic_id=clinic_id, limit=limit)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: int,
    service: Appointments,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Raises:
        NotFoundException: If appointment not found
    """
    return await service.get_appointment(appointment_id)


@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Reschedule or update appointment",
)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    service: Appointments,
) -> AppointmentResponse:
    """
    Update an existing appointment; time or doctor changes are re-validated.

    Args:
        appointment_id: Appointment ID
        data: Update data
        service: Appointment service

    Returns:
        Updated appointment
    """
    return await service.update_appointment(appointment_id, data)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    service: Appointments,
) -> AppointmentResponse:
    """
    Update appointment status (e.g., confirm, check in, cancel, complete).

    Raises:
        InvalidStatusTransitionException: 409 if the lifecycle forbids the change
    """
    return await service.update_appointment_status(appointment_id, data)


@router.get(
    "/{appointment_id}/audit",
    response_model=list[AuditLogResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Appointment audit trail",
)
async def get_appointment_audit(
    appointment_id: int,
    service: Appointments,
    audit: Audit,
) -> list[AuditLogResponse]:
    """List audit entries recorded for an appointment, oldest first."""
    await service.get_appointment(appointment_id)
    return await audit.list_for_object("appointment", appointment_id)
