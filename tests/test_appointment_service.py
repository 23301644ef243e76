"""Tests for the appointment service against a real database."""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import (
    ConflictException,
    DoubleBookingException,
    InvalidRangeException,
    InvalidStatusTransitionException,
    NotFoundException,
    ReferenceNotFoundException,
)
from app.models.appointments import appointments
from app.models.audit_logs import audit_logs
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from app.services.appointment_service import AppointmentService

ALICE = 1
JOHN = 2
MARY = 1
DAVID = 2
CENTRAL = 1
RECEPTION = 2


def slot(start: str, end: str, doctor_id: int = ALICE, patient_id: int = MARY, **extra) -> AppointmentCreate:
    return AppointmentCreate(
        patient_id=patient_id,
        doctor_id=doctor_id,
        clinic_id=CENTRAL,
        scheduled_start=datetime.fromisoformat(f"2025-09-22T{start}"),
        scheduled_end=datetime.fromisoformat(f"2025-09-22T{end}"),
        **extra,
    )


async def count_appointments(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(appointments))).scalar_one()


@pytest.mark.asyncio
async def test_create_appointment(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)

    created = await service.create_appointment(slot("10:00", "10:15", created_by=RECEPTION))

    assert created.appointment_id == 1
    assert created.status == AppointmentStatus.SCHEDULED
    assert created.scheduled_start == datetime(2025, 9, 22, 10, 0)
    assert created.created_by == RECEPTION


@pytest.mark.asyncio
async def test_overlapping_booking_reports_conflict(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    first = await service.create_appointment(slot("10:00", "10:15"))

    with pytest.raises(DoubleBookingException) as exc_info:
        await service.create_appointment(slot("10:10", "10:20", patient_id=DAVID))

    assert exc_info.value.conflicting_appointment_id == first.appointment_id
    assert await count_appointments(seeded) == 1


@pytest.mark.asyncio
async def test_back_to_back_booking_allowed(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    await service.create_appointment(slot("10:00", "10:15"))

    second = await service.create_appointment(slot("10:15", "10:30", patient_id=DAVID))

    assert second.appointment_id == 2
    assert await count_appointments(seeded) == 2


@pytest.mark.asyncio
async def test_other_doctor_not_affected(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    await service.create_appointment(slot("10:00", "10:15"))

    created = await service.create_appointment(slot("10:00", "10:15", doctor_id=JOHN, patient_id=DAVID))

    assert created.doctor_id == JOHN


@pytest.mark.asyncio
async def test_cancelled_slot_can_be_rebooked(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    first = await service.create_appointment(slot("10:00", "10:15"))

    await service.update_appointment_status(
        first.appointment_id,
        AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED),
    )
    rebooked = await service.create_appointment(slot("10:10", "10:20", patient_id=DAVID))

    assert rebooked.status == AppointmentStatus.SCHEDULED


@pytest.mark.asyncio
async def test_no_show_slot_can_be_rebooked(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    first = await service.create_appointment(slot("10:00", "10:15"))

    await service.update_appointment_status(
        first.appointment_id,
        AppointmentStatusUpdate(status=AppointmentStatus.NO_SHOW),
    )

    await service.create_appointment(slot("10:00", "10:15", patient_id=DAVID))
    assert await count_appointments(seeded) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(("start", "end"), [("10:00", "10:00"), ("10:30", "10:00")])
async def test_invalid_range_rejected(seeded: AsyncSession, start: str, end: str) -> None:
    service = AppointmentService(seeded)

    with pytest.raises(InvalidRangeException):
        await service.create_appointment(slot(start, end))

    assert await count_appointments(seeded) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "entity"),
    [
        ({"patient_id": 99}, "patient"),
        ({"doctor_id": 99}, "doctor"),
        ({"room_id": 99}, "room"),
        ({"created_by": 99}, "user"),
    ],
)
async def test_missing_reference_rejected(seeded: AsyncSession, overrides: dict, entity: str) -> None:
    service = AppointmentService(seeded)

    with pytest.raises(ReferenceNotFoundException) as exc_info:
        await service.create_appointment(slot("10:00", "10:15", **overrides))

    assert exc_info.value.entity == entity
    assert exc_info.value.reference_id == 99
    assert await count_appointments(seeded) == 0


@pytest.mark.asyncio
async def test_missing_clinic_rejected(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    data = slot("10:00", "10:15").model_copy(update={"clinic_id": 42})

    with pytest.raises(ReferenceNotFoundException) as exc_info:
        await service.create_appointment(data)

    assert exc_info.value.entity == "clinic"
    assert await count_appointments(seeded) == 0


@pytest.mark.asyncio
async def test_aware_datetimes_stored_as_utc(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    nairobi = timezone(timedelta(hours=3))

    created = await service.create_appointment(
        AppointmentCreate(
            patient_id=MARY,
            doctor_id=ALICE,
            clinic_id=CENTRAL,
            scheduled_start=datetime(2025, 9, 22, 13, 0, tzinfo=nairobi),
            scheduled_end=datetime(2025, 9, 22, 13, 15, tzinfo=nairobi),
        )
    )

    assert created.scheduled_start == datetime(2025, 9, 22, 10, 0)
    with pytest.raises(DoubleBookingException):
        await service.create_appointment(slot("10:05", "10:10", patient_id=DAVID))


@pytest.mark.asyncio
async def test_concurrent_bookings_admit_exactly_one(
    seeded: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Two sessions racing for overlapping slots: one wins, one sees the winner."""

    async def book(start: str, end: str, patient_id: int):
        async with session_factory() as session:
            return await AppointmentService(session).create_appointment(
                slot(start, end, patient_id=patient_id)
            )

    results = await asyncio.gather(
        book("10:00", "10:30", MARY),
        book("10:15", "10:45", DAVID),
        return_exceptions=True,
    )

    created = [r for r in results if not isinstance(r, BaseException)]
    rejected = [r for r in results if isinstance(r, BaseException)]
    assert len(created) == 1
    assert len(rejected) == 1
    assert isinstance(rejected[0], DoubleBookingException)
    assert rejected[0].conflicting_appointment_id == created[0].appointment_id
    assert await count_appointments(seeded) == 1


@pytest.mark.asyncio
async def test_validate_slot(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    first = await service.create_appointment(slot("10:00", "10:15"))
    start = datetime(2025, 9, 22, 10, 5)
    end = datetime(2025, 9, 22, 10, 20)

    with pytest.raises(DoubleBookingException):
        await service.validate_slot(ALICE, start, end)

    await service.validate_slot(ALICE, start, end, exclude_appointment_id=first.appointment_id)
    await service.validate_slot(JOHN, start, end)


@pytest.mark.asyncio
async def test_creation_is_audited(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15", created_by=RECEPTION))

    rows = (await seeded.execute(select(audit_logs))).mappings().all()

    assert len(rows) == 1
    assert rows[0]["action"] == "appointment_created"
    assert rows[0]["object_id"] == str(created.appointment_id)
    assert rows[0]["user_id"] == RECEPTION


@pytest.mark.asyncio
async def test_rejected_booking_leaves_no_audit_entry(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    await service.create_appointment(slot("10:00", "10:15"))

    with pytest.raises(DoubleBookingException):
        await service.create_appointment(slot("10:00", "10:15", patient_id=DAVID))

    total = (await seeded.execute(select(func.count()).select_from(audit_logs))).scalar_one()
    assert total == 1


@pytest.mark.asyncio
async def test_status_lifecycle(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15"))

    for status in (
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CHECKED_IN,
        AppointmentStatus.IN_CONSULTATION,
        AppointmentStatus.COMPLETED,
    ):
        updated = await service.update_appointment_status(
            created.appointment_id,
            AppointmentStatusUpdate(status=status),
        )
        assert updated.status == status

    with pytest.raises(InvalidStatusTransitionException):
        await service.update_appointment_status(
            created.appointment_id,
            AppointmentStatusUpdate(status=AppointmentStatus.SCHEDULED),
        )

    current = await service.get_appointment(created.appointment_id)
    assert current.status == AppointmentStatus.COMPLETED


@pytest.mark.asyncio
async def test_same_status_is_noop(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15"))

    updated = await service.update_appointment_status(
        created.appointment_id,
        AppointmentStatusUpdate(status=AppointmentStatus.SCHEDULED),
    )

    assert updated.status == AppointmentStatus.SCHEDULED
    total = (await seeded.execute(select(func.count()).select_from(audit_logs))).scalar_one()
    assert total == 1


@pytest.mark.asyncio
async def test_status_update_unknown_appointment(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)

    with pytest.raises(NotFoundException):
        await service.update_appointment_status(
            404,
            AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED),
        )


@pytest.mark.asyncio
async def test_reschedule_into_free_slot(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15"))

    # Overlapping its own old window is fine
    moved = await service.update_appointment(
        created.appointment_id,
        AppointmentUpdate(
            scheduled_start=datetime(2025, 9, 22, 10, 10),
            scheduled_end=datetime(2025, 9, 22, 10, 25),
        ),
    )

    assert moved.scheduled_start == datetime(2025, 9, 22, 10, 10)
    assert moved.scheduled_end == datetime(2025, 9, 22, 10, 25)


@pytest.mark.asyncio
async def test_reschedule_into_taken_slot(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    first = await service.create_appointment(slot("10:00", "10:15"))
    second = await service.create_appointment(slot("11:00", "11:15", patient_id=DAVID))

    with pytest.raises(DoubleBookingException) as exc_info:
        await service.update_appointment(
            second.appointment_id,
            AppointmentUpdate(
                scheduled_start=datetime(2025, 9, 22, 10, 5),
                scheduled_end=datetime(2025, 9, 22, 10, 20),
            ),
        )

    assert exc_info.value.conflicting_appointment_id == first.appointment_id
    unchanged = await service.get_appointment(second.appointment_id)
    assert unchanged.scheduled_start == datetime(2025, 9, 22, 11, 0)


@pytest.mark.asyncio
async def test_reschedule_to_other_doctor_checks_that_doctor(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    johns = await service.create_appointment(slot("10:00", "10:15", doctor_id=JOHN, patient_id=DAVID))
    alices = await service.create_appointment(slot("10:00", "10:15"))

    with pytest.raises(DoubleBookingException) as exc_info:
        await service.update_appointment(alices.appointment_id, AppointmentUpdate(doctor_id=JOHN))

    assert exc_info.value.conflicting_appointment_id == johns.appointment_id


@pytest.mark.asyncio
async def test_reschedule_with_empty_range(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15"))

    with pytest.raises(InvalidRangeException):
        await service.update_appointment(
            created.appointment_id,
            AppointmentUpdate(scheduled_end=datetime(2025, 9, 22, 9, 0)),
        )


@pytest.mark.asyncio
async def test_started_appointment_cannot_be_moved(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15"))
    await service.update_appointment_status(
        created.appointment_id,
        AppointmentStatusUpdate(status=AppointmentStatus.CHECKED_IN),
    )

    with pytest.raises(ConflictException):
        await service.update_appointment(
            created.appointment_id,
            AppointmentUpdate(
                scheduled_start=datetime(2025, 9, 22, 12, 0),
                scheduled_end=datetime(2025, 9, 22, 12, 15),
            ),
        )

    # Notes can still change
    updated = await service.update_appointment(created.appointment_id, AppointmentUpdate(notes="Fasting"))
    assert updated.notes == "Fasting"


@pytest.mark.asyncio
async def test_list_appointments_filters(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    await service.create_appointment(slot("11:00", "11:15"))
    await service.create_appointment(slot("10:00", "10:15", doctor_id=JOHN, patient_id=DAVID))
    await service.create_appointment(slot("09:00", "09:15"))

    alice = await service.list_appointments(AppointmentFilters(doctor_id=ALICE))
    assert alice.total == 2
    assert [item.scheduled_start.hour for item in alice.items] == [9, 11]

    everyone = await service.list_appointments(AppointmentFilters(page_size=2, page=2))
    assert everyone.total == 3
    assert len(everyone.items) == 1

    window = await service.list_appointments(
        AppointmentFilters(
            from_date=datetime(2025, 9, 22, 9, 30),
            to_date=datetime(2025, 9, 22, 10, 30),
        )
    )
    assert [item.doctor_id for item in window.items] == [JOHN]


@pytest.mark.asyncio
async def test_doctor_day(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    await service.create_appointment(slot("10:00", "10:15", patient_id=DAVID))
    cancelled = await service.create_appointment(slot("09:00", "09:15"))
    await service.update_appointment_status(
        cancelled.appointment_id,
        AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED),
    )
    await service.create_appointment(
        AppointmentCreate(
            patient_id=MARY,
            doctor_id=ALICE,
            clinic_id=CENTRAL,
            scheduled_start=datetime(2025, 9, 23, 10, 0),
            scheduled_end=datetime(2025, 9, 23, 10, 15),
        )
    )

    day = await service.get_doctor_day(ALICE, date(2025, 9, 22))

    assert day.day == "2025-09-22"
    assert [item.patient_name for item in day.items] == ["Mary Achieng", "David Kamau"]
    assert day.items[0].status == AppointmentStatus.CANCELLED


@pytest.mark.asyncio
async def test_doctor_day_unknown_doctor(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)

    with pytest.raises(ReferenceNotFoundException):
        await service.get_doctor_day(99, date(2025, 9, 22))


@pytest.mark.asyncio
async def test_list_upcoming(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    await service.create_appointment(slot("08:00", "08:15"))
    await service.create_appointment(slot("11:00", "11:15", doctor_id=JOHN, patient_id=DAVID))
    await service.create_appointment(slot("10:00", "10:15"))

    upcoming = await service.list_upcoming(now=datetime(2025, 9, 22, 9, 0))

    assert [item.scheduled_start.hour for item in upcoming] == [10, 11]
    assert upcoming[0].doctor_name == "Alice Wanjiru"
    assert upcoming[1].patient_name == "David Kamau"
    assert upcoming[0].clinic_name == "Central Clinic"

    limited = await service.list_upcoming(limit=1, now=datetime(2025, 9, 22, 9, 0))
    assert len(limited) == 1


@pytest.mark.asyncio
async def test_update_clears_room_and_notes(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15", room_id=1, notes="Bring scans"))

    updated = await service.update_appointment(
        created.appointment_id,
        AppointmentUpdate(room_id=None, notes=None),
    )

    assert updated.room_id is None
    assert updated.notes is None
    assert (await service.get_appointment(created.appointment_id)).room_id is None


@pytest.mark.asyncio
async def test_update_ignores_null_for_required_fields(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15", room_id=1))

    updated = await service.update_appointment(
        created.appointment_id,
        AppointmentUpdate(doctor_id=None, scheduled_start=None, notes="Follow-up"),
    )

    assert updated.doctor_id == ALICE
    assert updated.scheduled_start == datetime(2025, 9, 22, 10, 0)
    assert updated.room_id == 1
    assert updated.notes == "Follow-up"


@pytest.mark.asyncio
async def test_room_from_other_clinic_rejected(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)

    # Room 3 (A1) belongs to Westside Clinic
    with pytest.raises(ConflictException) as exc_info:
        await service.create_appointment(slot("10:00", "10:15", room_id=3))

    assert exc_info.value.details == {"room_id": 3, "room_clinic_id": 2, "clinic_id": CENTRAL}
    assert await count_appointments(seeded) == 0


@pytest.mark.asyncio
async def test_update_to_room_from_other_clinic_rejected(seeded: AsyncSession) -> None:
    service = AppointmentService(seeded)
    created = await service.create_appointment(slot("10:00", "10:15", room_id=1))

    with pytest.raises(ConflictException):
        await service.update_appointment(created.appointment_id, AppointmentUpdate(room_id=3))

    # Moving clinic together with a matching room is accepted
    moved = await service.update_appointment(
        created.appointment_id,
        AppointmentUpdate(clinic_id=2, room_id=3),
    )
    assert moved.clinic_id == 2
    assert moved.room_id == 3
