"""Prescription schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, Field


class PrescriptionItemCreate(BaseModel):
    """A medicine to add to a prescription."""

    medicine_name: str = Field(..., min_length=1, max_length=255)
    dose: str | None = Field(None, max_length=100)
    frequency: str | None = Field(None, max_length=100)
    duration: str | None = Field(None, max_length=100)


class PrescriptionCreate(BaseModel):
    """Schema for issuing a prescription during an appointment."""

    prescribed_by: int = Field(..., gt=0)
    instructions: str | None = None
    items: list[PrescriptionItemCreate] = Field(..., min_length=1)


class PrescriptionItemResponse(PrescriptionItemCreate):
    """Prescription line item."""

    item_no: int

    model_config = {"from_attributes": True}


class PrescriptionResponse(BaseModel):
    """Issued prescription with its items."""

    prescription_id: int
    appointment_id: int
    prescribed_by: int
    issued_at: datetime
    instructions: str | None = None
    items: list[PrescriptionItemResponse]
