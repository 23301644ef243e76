"""Doctor schedule endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from app.dependencies import Appointments
from app.schemas.appointments import DoctorDayResponse

router = APIRouter()


@router.get(
    "/{doctor_id}/schedule",
    response_model=DoctorDayResponse,
    status_code=status.HTTP_200_OK,
    tags=["Doctors"],
    summary="Doctor's daily schedule",
)
async def get_doctor_schedule(
    doctor_id: int,
    service: Appointments,
    day: date = Query(..., description="Calendar day, YYYY-MM-DD"),
) -> DoctorDayResponse:
    """
    Get every appointment a doctor has on a given day, with patient names.

    Args:
        doctor_id: Doctor ID
        service: Appointment service
        day: Calendar day

    Returns:
        The doctor's appointments ordered by start time
    """
    return await service.get_doctor_day(doctor_id, day)
