"""Appointment service for business logic."""

from datetime import UTC, date, datetime, time, timedelta
from typing import Any

import structlog
from sqlalchemy import Table, and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    ConflictException,
    DoubleBookingException,
    NotFoundException,
    ReferenceNotFoundException,
)
from app.core.scheduling import (
    RESCHEDULABLE_STATUSES,
    check_slot,
    ensure_transition_allowed,
    ensure_valid_range,
    to_naive_utc,
)
from app.models.appointments import appointments
from app.models.clinics import clinics, rooms
from app.models.doctors import doctors
from app.models.patients import patients
from app.models.users import users
from app.schemas.appointments import (
    INACTIVE_STATUSES,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    DoctorDayEntry,
    DoctorDayResponse,
    UpcomingAppointment,
)
from app.services.audit_service import AuditService

logger = structlog.get_logger()

# Table, primary key column name and entity label for reference checks
_REFERENCES: dict[str, tuple[Table, str]] = {
    "patient": (patients, "patient_id"),
    "doctor": (doctors, "doctor_id"),
    "clinic": (clinics, "clinic_id"),
    "user": (users, "user_id"),
}

_SCHEDULE_FIELDS = ("doctor_id", "scheduled_start", "scheduled_end")

# Columns an update may set back to NULL
_CLEARABLE_FIELDS = ("room_id", "notes")


def _full_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}"


class AppointmentService:
    """Service for managing appointments.

    Every write that can change a doctor's occupied time takes a row lock on
    that doctor (SELECT ... FOR UPDATE) before reading the doctor's active
    appointments, and keeps it until commit or rollback. Concurrent bookings
    for the same doctor therefore run one after another, and the second one
    sees the first one's row.
    """

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db
        self.audit = AuditService(db)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _ensure_exists(self, entity: str, reference_id: int | None) -> None:
        """Raise ReferenceNotFoundException unless the referenced row exists."""
        if reference_id is None:
            return
        table, column = _REFERENCES[entity]
        stmt = select(table.c[column]).where(table.c[column] == reference_id)
        result = await self.db.execute(stmt)
        if result.first() is None:
            raise ReferenceNotFoundException(entity, reference_id)

    async def _lock_doctor(self, doctor_id: int) -> None:
        """Lock the doctor's row for the rest of the transaction."""
        stmt = select(doctors.c.doctor_id).where(doctors.c.doctor_id == doctor_id).with_for_update()
        result = await self.db.execute(stmt)
        if result.first() is None:
            raise ReferenceNotFoundException("doctor", doctor_id)

    async def _ensure_room_in_clinic(self, room_id: int | None, clinic_id: int) -> None:
        """Check that the room exists and belongs to the appointment's clinic."""
        if room_id is None:
            return
        stmt = select(rooms.c.clinic_id).where(rooms.c.room_id == room_id)
        room_clinic_id = (await self.db.execute(stmt)).scalar()
        if room_clinic_id is None:
            raise ReferenceNotFoundException("room", room_id)
        if room_clinic_id != clinic_id:
            raise ConflictException(
                "Room does not belong to the appointment's clinic",
                details={"room_id": room_id, "room_clinic_id": room_clinic_id, "clinic_id": clinic_id},
            )

    async def _active_appointments(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
    ) -> list[Any]:
        """Fetch the doctor's active appointments that could touch the window."""
        stmt = (
            select(
                appointments.c.appointment_id,
                appointments.c.scheduled_start,
                appointments.c.scheduled_end,
                appointments.c.status,
            )
            .where(
                and_(
                    appointments.c.doctor_id == doctor_id,
                    appointments.c.status.not_in([s.value for s in INACTIVE_STATUSES]),
                    appointments.c.scheduled_start < end,
                    appointments.c.scheduled_end > start,
                )
            )
            .order_by(appointments.c.scheduled_start)
        )
        result = await self.db.execute(stmt)
        return list(result.mappings().all())

    async def _get_row(self, appointment_id: int, for_update: bool = False) -> Any:
        """Load an appointment row or raise NotFoundException."""
        stmt = select(appointments).where(appointments.c.appointment_id == appointment_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if row is None:
            raise NotFoundException("Appointment not found", details={"appointment_id": appointment_id})
        return row

    # ------------------------------------------------------------------
    # Validation and creation
    # ------------------------------------------------------------------

    async def validate_slot(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        exclude_appointment_id: int | None = None,
    ) -> None:
        """
        Check whether a doctor can take an appointment in [start, end).

        Read-only: takes no locks and writes nothing. Callers that go on to
        write must re-check inside their own locked transaction.

        Args:
            doctor_id: Doctor to check
            start: Proposed start
            end: Proposed end
            exclude_appointment_id: Appointment to leave out of the comparison

        Raises:
            InvalidRangeException: If start is not before end
            DoubleBookingException: If an active appointment overlaps
        """
        start, end = to_naive_utc(start), to_naive_utc(end)
        ensure_valid_range(start, end)
        existing = await self._active_appointments(doctor_id, start, end)
        check_slot(doctor_id, start, end, existing, exclude_appointment_id)

    async def create_appointment(self, data: AppointmentCreate) -> AppointmentResponse:
        """
        Validate and insert a new appointment in one transaction.

        Args:
            data: Appointment creation data

        Returns:
            Created appointment, status "scheduled"

        Raises:
            InvalidRangeException: If start is not before end
            ReferenceNotFoundException: If a referenced row does not exist
            ConflictException: If the room belongs to another clinic
            DoubleBookingException: If the doctor is already booked in the window
        """
        start = to_naive_utc(data.scheduled_start)
        end = to_naive_utc(data.scheduled_end)

        try:
            ensure_valid_range(start, end)
            await self._lock_doctor(data.doctor_id)
            await self._ensure_exists("patient", data.patient_id)
            await self._ensure_exists("clinic", data.clinic_id)
            await self._ensure_room_in_clinic(data.room_id, data.clinic_id)
            await self._ensure_exists("user", data.created_by)

            existing = await self._active_appointments(data.doctor_id, start, end)
            check_slot(data.doctor_id, start, end, existing)

            stmt = (
                insert(appointments)
                .values(
                    patient_id=data.patient_id,
                    doctor_id=data.doctor_id,
                    clinic_id=data.clinic_id,
                    room_id=data.room_id,
                    scheduled_start=start,
                    scheduled_end=end,
                    status=AppointmentStatus.SCHEDULED.value,
                    notes=data.notes,
                    created_by=data.created_by,
                )
                .returning(appointments)
            )
            result = await self.db.execute(stmt)
            row = result.mappings().one()

            await self.audit.record(
                "appointment_created",
                "appointment",
                row["appointment_id"],
                user_id=data.created_by,
                details={
                    "doctor_id": data.doctor_id,
                    "scheduled_start": start,
                    "scheduled_end": end,
                },
            )
            await self.db.commit()
        except DoubleBookingException as e:
            await self.db.rollback()
            logger.info(
                "appointment_double_booking_rejected",
                doctor_id=data.doctor_id,
                conflicting_appointment_id=e.conflicting_appointment_id,
            )
            raise
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "appointment_created",
            appointment_id=row["appointment_id"],
            doctor_id=data.doctor_id,
            patient_id=data.patient_id,
        )
        return AppointmentResponse.model_validate(dict(row))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_appointment(self, appointment_id: int) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        row = await self._get_row(appointment_id)
        return AppointmentResponse.model_validate(dict(row))

    async def list_appointments(self, filters: AppointmentFilters) -> AppointmentListResponse:
        """
        List appointments with filtering and pagination.

        Args:
            filters: Filter and pagination parameters

        Returns:
            Paginated list of appointments ordered by start time
        """
        conditions = []

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.doctor_id:
            conditions.append(appointments.c.doctor_id == filters.doctor_id)

        if filters.clinic_id:
            conditions.append(appointments.c.clinic_id == filters.clinic_id)

        if filters.from_date:
            conditions.append(appointments.c.scheduled_start >= to_naive_utc(filters.from_date))

        if filters.to_date:
            conditions.append(appointments.c.scheduled_start <= to_naive_utc(filters.to_date))

        count_stmt = select(func.count()).select_from(appointments).where(*conditions)
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar() or 0

        offset = (filters.page - 1) * filters.page_size

        stmt = (
            select(appointments)
            .where(*conditions)
            .order_by(appointments.c.scheduled_start, appointments.c.appointment_id)
            .limit(filters.page_size)
            .offset(offset)
        )

        result = await self.db.execute(stmt)
        items = [AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()]

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=items,
        )

    async def get_doctor_day(self, doctor_id: int, day: date) -> DoctorDayResponse:
        """
        Get a doctor's appointments for one calendar day, every status included.

        Raises:
            ReferenceNotFoundException: If the doctor does not exist
        """
        await self._ensure_exists("doctor", doctor_id)

        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)

        stmt = (
            select(appointments, patients.c.first_name, patients.c.last_name)
            .join(patients, patients.c.patient_id == appointments.c.patient_id)
            .where(
                and_(
                    appointments.c.doctor_id == doctor_id,
                    appointments.c.scheduled_start >= day_start,
                    appointments.c.scheduled_start < day_end,
                )
            )
            .order_by(appointments.c.scheduled_start)
        )
        result = await self.db.execute(stmt)

        items = []
        for row in result.mappings().all():
            data = dict(row)
            data["patient_name"] = _full_name(data.pop("first_name"), data.pop("last_name"))
            items.append(DoctorDayEntry.model_validate(data))

        return DoctorDayResponse(doctor_id=doctor_id, day=day.isoformat(), items=items)

    async def list_upcoming(
        self,
        clinic_id: int | None = None,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[UpcomingAppointment]:
        """
        List appointments starting from now on, with display names.

        Args:
            clinic_id: Restrict to one clinic
            limit: Maximum rows, defaults to the configured limit
            now: Reference time, defaults to the current UTC time

        Returns:
            Upcoming appointments ordered by start time
        """
        now = to_naive_utc(now) if now else datetime.now(UTC).replace(tzinfo=None)
        limit = limit or settings.upcoming_appointments_limit

        stmt = (
            select(
                appointments.c.appointment_id,
                appointments.c.scheduled_start,
                appointments.c.scheduled_end,
                appointments.c.status,
                patients.c.patient_id,
                patients.c.first_name.label("patient_first_name"),
                patients.c.last_name.label("patient_last_name"),
                doctors.c.doctor_id,
                doctors.c.first_name.label("doctor_first_name"),
                doctors.c.last_name.label("doctor_last_name"),
                clinics.c.clinic_id,
                clinics.c.name.label("clinic_name"),
            )
            .select_from(
                appointments.join(patients, patients.c.patient_id == appointments.c.patient_id)
                .join(doctors, doctors.c.doctor_id == appointments.c.doctor_id)
                .join(clinics, clinics.c.clinic_id == appointments.c.clinic_id)
            )
            .where(appointments.c.scheduled_start >= now)
            .order_by(appointments.c.scheduled_start)
            .limit(limit)
        )
        if clinic_id is not None:
            stmt = stmt.where(appointments.c.clinic_id == clinic_id)

        result = await self.db.execute(stmt)
        return [
            UpcomingAppointment(
                appointment_id=row["appointment_id"],
                scheduled_start=row["scheduled_start"],
                scheduled_end=row["scheduled_end"],
                status=row["status"],
                patient_id=row["patient_id"],
                patient_name=_full_name(row["patient_first_name"], row["patient_last_name"]),
                doctor_id=row["doctor_id"],
                doctor_name=_full_name(row["doctor_first_name"], row["doctor_last_name"]),
                clinic_id=row["clinic_id"],
                clinic_name=row["clinic_name"],
            )
            for row in result.mappings().all()
        ]

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    async def update_appointment(
        self,
        appointment_id: int,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Reschedule or edit an existing appointment.

        Changing the doctor, start or end re-runs the overlap check against
        the (new) doctor's schedule under that doctor's lock, leaving this
        appointment out of the comparison.

        Args:
            appointment_id: Appointment ID
            data: Fields to change; unset fields are left as they are; room and notes
                may be cleared with an explicit null

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            ConflictException: If the appointment can no longer be moved,
                or the room belongs to another clinic
            InvalidRangeException: If the resulting window is empty
            ReferenceNotFoundException: If a referenced row does not exist
            DoubleBookingException: If the new window is taken
        """
        try:
            current = await self._get_row(appointment_id, for_update=True)

            update_values: dict[str, Any] = {}
            for field, value in data.model_dump(exclude_unset=True, exclude={"updated_by"}).items():
                if value is None and field not in _CLEARABLE_FIELDS:
                    continue
                if field in ("scheduled_start", "scheduled_end"):
                    value = to_naive_utc(value)
                if value != current[field]:
                    update_values[field] = value

            if not update_values:
                await self.db.rollback()
                return AppointmentResponse.model_validate(dict(current))

            moves = any(field in update_values for field in _SCHEDULE_FIELDS)
            doctor_id = update_values.get("doctor_id", current["doctor_id"])
            start = update_values.get("scheduled_start", current["scheduled_start"])
            end = update_values.get("scheduled_end", current["scheduled_end"])

            if moves:
                if AppointmentStatus(current["status"]) not in RESCHEDULABLE_STATUSES:
                    raise ConflictException(
                        "Only scheduled or confirmed appointments can be rescheduled",
                        details={"appointment_id": appointment_id, "status": current["status"]},
                    )
                ensure_valid_range(start, end)
                await self._lock_doctor(doctor_id)
                existing = await self._active_appointments(doctor_id, start, end)
                check_slot(doctor_id, start, end, existing, exclude_appointment_id=appointment_id)

            await self._ensure_exists("clinic", update_values.get("clinic_id"))
            if "room_id" in update_values or "clinic_id" in update_values:
                await self._ensure_room_in_clinic(
                    update_values.get("room_id", current["room_id"]),
                    update_values.get("clinic_id", current["clinic_id"]),
                )
            await self._ensure_exists("user", data.updated_by)

            stmt = (
                update(appointments)
                .where(appointments.c.appointment_id == appointment_id)
                .values(**update_values)
                .returning(appointments)
            )
            result = await self.db.execute(stmt)
            row = result.mappings().one()

            await self.audit.record(
                "appointment_rescheduled" if moves else "appointment_updated",
                "appointment",
                appointment_id,
                user_id=data.updated_by,
                details={
                    field: {"from": current[field], "to": value}
                    for field, value in update_values.items()
                },
            )
            await self.db.commit()
        except DoubleBookingException as e:
            await self.db.rollback()
            logger.info(
                "appointment_double_booking_rejected",
                appointment_id=appointment_id,
                doctor_id=e.doctor_id,
                conflicting_appointment_id=e.conflicting_appointment_id,
            )
            raise
        except Exception:
            await self.db.rollback()
            raise

        if moves:
            logger.info(
                "appointment_rescheduled",
                appointment_id=appointment_id,
                doctor_id=row["doctor_id"],
                scheduled_start=row["scheduled_start"].isoformat(),
            )
        return AppointmentResponse.model_validate(dict(row))

    async def update_appointment_status(
        self,
        appointment_id: int,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Move an appointment through its lifecycle.

        Requesting the current status is a no-op.

        Args:
            appointment_id: Appointment ID
            data: Status update data

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            InvalidStatusTransitionException: If the change is not allowed
        """
        try:
            current = await self._get_row(appointment_id, for_update=True)
            old_status = current["status"]

            if old_status == data.status.value:
                await self.db.rollback()
                return AppointmentResponse.model_validate(dict(current))

            ensure_transition_allowed(old_status, data.status)
            await self._ensure_exists("user", data.updated_by)

            update_values: dict[str, Any] = {"status": data.status.value}
            if data.notes:
                update_values["notes"] = data.notes

            stmt = (
                update(appointments)
                .where(appointments.c.appointment_id == appointment_id)
                .values(**update_values)
                .returning(appointments)
            )
            result = await self.db.execute(stmt)
            row = result.mappings().one()

            await self.audit.record(
                "appointment_status_changed",
                "appointment",
                appointment_id,
                user_id=data.updated_by,
                details={"from": old_status, "to": data.status.value},
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "appointment_status_changed",
            appointment_id=appointment_id,
            old_status=old_status,
            new_status=data.status.value,
        )
        return AppointmentResponse.model_validate(dict(row))
