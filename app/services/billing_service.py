"""Billing service: services rendered and payments received per appointment."""

from decimal import Decimal

import structlog
from sqlalchemy import RowMapping, and_, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, NotFoundException, ReferenceNotFoundException
from app.models.appointments import appointment_services, appointments
from app.models.doctors import doctors
from app.models.payments import payments
from app.models.services import doctor_services, services
from app.models.users import users
from app.schemas.billing import (
    AppointmentServiceCreate,
    AppointmentServiceLine,
    BillingSummary,
    PaymentCreate,
    PaymentResponse,
)
from app.services.audit_service import AuditService

logger = structlog.get_logger()

CENT = Decimal("0.01")


class BillingService:
    """Service for appointment billing."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.audit = AuditService(db)

    async def _get_appointment(self, appointment_id: int) -> RowMapping:
        """Load the appointment's id and doctor or raise NotFoundException."""
        stmt = select(appointments.c.appointment_id, appointments.c.doctor_id).where(
            appointments.c.appointment_id == appointment_id
        )
        row = (await self.db.execute(stmt)).mappings().first()
        if row is None:
            raise NotFoundException("Appointment not found", details={"appointment_id": appointment_id})
        return row

    async def _resolve_price(self, service_id: int, doctor_id: int | None) -> Decimal:
        """Doctor's own price for the service if set, else the standard price."""
        if doctor_id is not None:
            stmt = select(doctor_services.c.price).where(
                and_(
                    doctor_services.c.doctor_id == doctor_id,
                    doctor_services.c.service_id == service_id,
                )
            )
            price = (await self.db.execute(stmt)).scalar()
            if price is not None:
                return Decimal(price)

        stmt = select(services.c.standard_price).where(services.c.service_id == service_id)
        return Decimal((await self.db.execute(stmt)).scalar_one())

    async def _lines(self, appointment_id: int) -> list[AppointmentServiceLine]:
        stmt = (
            select(appointment_services, services.c.name.label("service_name"))
            .join(services, services.c.service_id == appointment_services.c.service_id)
            .where(appointment_services.c.appointment_id == appointment_id)
            .order_by(appointment_services.c.service_id)
        )
        result = await self.db.execute(stmt)
        lines = []
        for row in result.mappings().all():
            unit_price = Decimal(row["unit_price"]).quantize(CENT)
            lines.append(
                AppointmentServiceLine(
                    appointment_id=row["appointment_id"],
                    service_id=row["service_id"],
                    service_name=row["service_name"],
                    doctor_id=row["doctor_id"],
                    quantity=row["quantity"],
                    unit_price=unit_price,
                    line_total=(unit_price * row["quantity"]).quantize(CENT),
                )
            )
        return lines

    async def add_service(
        self,
        appointment_id: int,
        data: AppointmentServiceCreate,
    ) -> AppointmentServiceLine:
        """
        Bill a service on an appointment, snapshotting its price.

        Args:
            appointment_id: Appointment ID
            data: Service, quantity and optional explicit price

        Returns:
            The billed line

        Raises:
            NotFoundException: If appointment not found
            ReferenceNotFoundException: If the service or doctor does not exist
            ConflictException: If the service is already billed on the appointment
        """
        try:
            appointment = await self._get_appointment(appointment_id)

            service_exists = (
                await self.db.execute(
                    select(services.c.service_id).where(services.c.service_id == data.service_id)
                )
            ).first()
            if service_exists is None:
                raise ReferenceNotFoundException("service", data.service_id)

            if data.doctor_id is not None:
                doctor_exists = (
                    await self.db.execute(
                        select(doctors.c.doctor_id).where(doctors.c.doctor_id == data.doctor_id)
                    )
                ).first()
                if doctor_exists is None:
                    raise ReferenceNotFoundException("doctor", data.doctor_id)

            doctor_id = data.doctor_id or appointment["doctor_id"]

            duplicate = (
                await self.db.execute(
                    select(appointment_services.c.service_id).where(
                        and_(
                            appointment_services.c.appointment_id == appointment_id,
                            appointment_services.c.service_id == data.service_id,
                        )
                    )
                )
            ).first()
            if duplicate is not None:
                raise ConflictException(
                    "Service already billed on this appointment",
                    details={"appointment_id": appointment_id, "service_id": data.service_id},
                )

            unit_price = (
                data.unit_price
                if data.unit_price is not None
                else await self._resolve_price(data.service_id, doctor_id)
            )

            await self.db.execute(
                insert(appointment_services).values(
                    appointment_id=appointment_id,
                    service_id=data.service_id,
                    doctor_id=doctor_id,
                    unit_price=unit_price,
                    quantity=data.quantity,
                )
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        lines = await self._lines(appointment_id)
        return next(line for line in lines if line.service_id == data.service_id)

    async def record_payment(self, appointment_id: int, data: PaymentCreate) -> PaymentResponse:
        """
        Record a (possibly partial) payment against an appointment.

        Raises:
            NotFoundException: If appointment not found
            ReferenceNotFoundException: If the recording user does not exist
        """
        try:
            await self._get_appointment(appointment_id)

            if data.created_by is not None:
                user = (
                    await self.db.execute(select(users.c.user_id).where(users.c.user_id == data.created_by))
                ).first()
                if user is None:
                    raise ReferenceNotFoundException("user", data.created_by)

            stmt = (
                insert(payments)
                .values(
                    appointment_id=appointment_id,
                    amount=data.amount,
                    method=data.method.value,
                    transaction_ref=data.transaction_ref,
                    created_by=data.created_by,
                )
                .returning(payments)
            )
            row = (await self.db.execute(stmt)).mappings().one()

            await self.audit.record(
                "payment_recorded",
                "appointment",
                appointment_id,
                user_id=data.created_by,
                details={"payment_id": row["payment_id"], "amount": data.amount, "method": data.method.value},
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "payment_recorded",
            appointment_id=appointment_id,
            payment_id=row["payment_id"],
            method=data.method.value,
        )
        return PaymentResponse.model_validate(dict(row))

    async def get_total_paid(self, appointment_id: int) -> Decimal:
        """Sum of payments received for an appointment."""
        stmt = select(payments.c.amount).where(payments.c.appointment_id == appointment_id)
        amounts = (await self.db.execute(stmt)).scalars().all()
        return sum((Decimal(amount) for amount in amounts), Decimal("0")).quantize(CENT)

    async def get_billing_summary(self, appointment_id: int) -> BillingSummary:
        """
        Billed lines, totals and outstanding balance for an appointment.

        Raises:
            NotFoundException: If appointment not found
        """
        await self._get_appointment(appointment_id)

        lines = await self._lines(appointment_id)
        total_billed = sum((line.line_total for line in lines), Decimal("0")).quantize(CENT)
        total_paid = await self.get_total_paid(appointment_id)

        return BillingSummary(
            appointment_id=appointment_id,
            lines=lines,
            total_billed=total_billed,
            total_paid=total_paid,
            balance_due=(total_billed - total_paid).quantize(CENT),
        )
