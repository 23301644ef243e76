"""Prescription service."""

import structlog
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, NotFoundException, ReferenceNotFoundException
from app.models.appointments import appointments
from app.models.doctors import doctors
from app.models.prescriptions import prescription_items, prescriptions
from app.schemas.appointments import AppointmentStatus
from app.schemas.prescriptions import (
    PrescriptionCreate,
    PrescriptionItemResponse,
    PrescriptionResponse,
)
from app.services.audit_service import AuditService

logger = structlog.get_logger()

# Prescriptions are written during or after the consultation
PRESCRIBABLE_STATUSES = frozenset({AppointmentStatus.IN_CONSULTATION, AppointmentStatus.COMPLETED})


class PrescriptionService:
    """Service for prescriptions issued during appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.audit = AuditService(db)

    async def _get_status(self, appointment_id: int) -> AppointmentStatus:
        """Current status of an appointment or NotFoundException."""
        stmt = select(appointments.c.status).where(appointments.c.appointment_id == appointment_id)
        status = (await self.db.execute(stmt)).scalar()
        if status is None:
            raise NotFoundException("Appointment not found", details={"appointment_id": appointment_id})
        return AppointmentStatus(status)

    async def issue_prescription(
        self,
        appointment_id: int,
        data: PrescriptionCreate,
    ) -> PrescriptionResponse:
        """
        Issue a prescription with its items.

        Args:
            appointment_id: Appointment the prescription belongs to
            data: Prescribing doctor, instructions and medicines

        Returns:
            The issued prescription

        Raises:
            NotFoundException: If appointment not found
            ConflictException: If the consultation has not started
            ReferenceNotFoundException: If the prescribing doctor does not exist
        """
        try:
            status = await self._get_status(appointment_id)
            if status not in PRESCRIBABLE_STATUSES:
                raise ConflictException(
                    "Prescriptions can only be issued once the consultation has started",
                    details={"appointment_id": appointment_id, "status": status.value},
                )

            doctor = (
                await self.db.execute(
                    select(doctors.c.doctor_id).where(doctors.c.doctor_id == data.prescribed_by)
                )
            ).first()
            if doctor is None:
                raise ReferenceNotFoundException("doctor", data.prescribed_by)

            header = (
                await self.db.execute(
                    insert(prescriptions)
                    .values(
                        appointment_id=appointment_id,
                        prescribed_by=data.prescribed_by,
                        instructions=data.instructions,
                    )
                    .returning(prescriptions)
                )
            ).mappings().one()

            items = [
                {"prescription_id": header["prescription_id"], "item_no": number, **item.model_dump()}
                for number, item in enumerate(data.items, start=1)
            ]
            await self.db.execute(insert(prescription_items), items)

            await self.audit.record(
                "prescription_issued",
                "appointment",
                appointment_id,
                details={"prescription_id": header["prescription_id"], "items": len(items)},
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "prescription_issued",
            appointment_id=appointment_id,
            prescription_id=header["prescription_id"],
        )
        return PrescriptionResponse(
            **dict(header),
            items=[PrescriptionItemResponse.model_validate(item) for item in items],
        )

    async def list_prescriptions(self, appointment_id: int) -> list[PrescriptionResponse]:
        """List prescriptions for an appointment, each with its items.

        Raises:
            NotFoundException: If appointment not found
        """
        await self._get_status(appointment_id)

        stmt = (
            select(prescriptions)
            .where(prescriptions.c.appointment_id == appointment_id)
            .order_by(prescriptions.c.prescription_id)
        )
        headers = (await self.db.execute(stmt)).mappings().all()
        if not headers:
            return []

        items_stmt = (
            select(prescription_items)
            .where(prescription_items.c.prescription_id.in_([h["prescription_id"] for h in headers]))
            .order_by(prescription_items.c.prescription_id, prescription_items.c.item_no)
        )
        items_by_prescription: dict[int, list[PrescriptionItemResponse]] = {}
        for row in (await self.db.execute(items_stmt)).mappings().all():
            items_by_prescription.setdefault(row["prescription_id"], []).append(
                PrescriptionItemResponse.model_validate(dict(row))
            )

        return [
            PrescriptionResponse(**dict(header), items=items_by_prescription.get(header["prescription_id"], []))
            for header in headers
        ]
