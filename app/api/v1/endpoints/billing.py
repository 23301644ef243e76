"""Billing endpoints."""

from fastapi import APIRouter, status

from app.dependencies import Billing
from app.schemas.billing import (
    AppointmentServiceCreate,
    AppointmentServiceLine,
    BillingSummary,
    PaymentCreate,
    PaymentResponse,
)

router = APIRouter()


@router.post(
    "/{appointment_id}/services",
    response_model=AppointmentServiceLine,
    status_code=status.HTTP_201_CREATED,
    tags=["Billing"],
    summary="Bill a service on an appointment",
)
async def add_appointment_service(
    appointment_id: int,
    data: AppointmentServiceCreate,
    service: Billing,
) -> AppointmentServiceLine:
    """
    Add a service line to an appointment.

    The unit price defaults to the doctor's price for the service, then to
    the service's standard price.
    """
    return await service.add_service(appointment_id, data)


@router.post(
    "/{appointment_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Billing"],
    summary="Record a payment",
)
async def record_payment(
    appointment_id: int,
    data: PaymentCreate,
    service: Billing,
) -> PaymentResponse:
    """Record a full or partial payment received for an appointment."""
    return await service.record_payment(appointment_id, data)


@router.get(
    "/{appointment_id}/billing",
    response_model=BillingSummary,
    status_code=status.HTTP_200_OK,
    tags=["Billing"],
    summary="Billing summary",
)
async def get_billing_summary(
    appointment_id: int,
    service: Billing,
) -> BillingSummary:
    """
    Get billed lines, total billed, total paid and balance due.

    Args:
        appointment_id: Appointment ID
        service: Billing service

    Returns:
        Billing summary
    """
    return await service.get_billing_summary(appointment_id)
