"""Prescription endpoints."""

from fastapi import APIRouter, status

from app.dependencies import Prescriptions
from app.schemas.prescriptions import PrescriptionCreate, PrescriptionResponse

router = APIRouter()


@router.post(
    "/{appointment_id}/prescriptions",
    response_model=PrescriptionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Prescriptions"],
    summary="Issue a prescription",
)
async def issue_prescription(
    appointment_id: int,
    data: PrescriptionCreate,
    service: Prescriptions,
) -> PrescriptionResponse:
    """
    Issue a prescription during or after a consultation.

    Raises:
        ConflictException: 409 if the consultation has not started
    """
    return await service.issue_prescription(appointment_id, data)


@router.get(
    "/{appointment_id}/prescriptions",
    response_model=list[PrescriptionResponse],
    status_code=status.HTTP_200_OK,
    tags=["Prescriptions"],
    summary="List prescriptions",
)
async def list_prescriptions(
    appointment_id: int,
    service: Prescriptions,
) -> list[PrescriptionResponse]:
    """List prescriptions issued for an appointment."""
    return await service.list_prescriptions(appointment_id)
