"""Billing schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_serializer


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    INSURANCE = "insurance"


class AppointmentServiceCreate(BaseModel):
    """Schema for adding a billable service to an appointment."""

    service_id: int = Field(..., gt=0)
    quantity: int = Field(default=1, ge=1)
    # Falls back to the doctor's price, then the service's standard price
    unit_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    doctor_id: int | None = Field(None, gt=0)


class AppointmentServiceLine(BaseModel):
    """A billed service line."""

    appointment_id: int
    service_id: int
    service_name: str
    doctor_id: int | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    @field_serializer("unit_price", "line_total", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        """Serialize Decimal to float for JSON."""
        return float(value)


class PaymentCreate(BaseModel):
    """Schema for recording a payment."""

    amount: Decimal = Field(..., ge=0, decimal_places=2)
    method: PaymentMethod
    transaction_ref: str | None = Field(None, max_length=150)
    created_by: int | None = Field(None, gt=0)


class PaymentResponse(BaseModel):
    """Recorded payment."""

    payment_id: int
    appointment_id: int
    amount: Decimal
    method: PaymentMethod
    transaction_ref: str | None = None
    paid_at: datetime
    created_by: int | None = None

    model_config = {"from_attributes": True}

    @field_serializer("amount", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        """Serialize Decimal to float for JSON."""
        return float(value)


class BillingSummary(BaseModel):
    """Services billed and payments received for an appointment."""

    appointment_id: int
    lines: list[AppointmentServiceLine]
    total_billed: Decimal
    total_paid: Decimal
    balance_due: Decimal

    @field_serializer("total_billed", "total_paid", "balance_due", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        """Serialize Decimal to float for JSON."""
        return float(value)
