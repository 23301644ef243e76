"""Sample dataset for local development and tests."""

from datetime import date, time
from decimal import Decimal

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    clinics,
    doctor_services,
    doctors,
    patients,
    rooms,
    schedules,
    services,
    users,
)

CLINICS = [
    {"name": "Central Clinic", "address": "123 Main St, Nairobi", "phone": "+254700000001"},
    {"name": "Westside Clinic", "address": "45 West Rd", "phone": "+254700000002"},
]

ROOMS = [
    {"clinic_id": 1, "room_number": "101", "description": "Consultation Room 1"},
    {"clinic_id": 1, "room_number": "102", "description": "Consultation Room 2"},
    {"clinic_id": 2, "room_number": "A1", "description": "Consultation Room A1"},
]

# Placeholder hashes; real accounts are provisioned outside this service
USERS = [
    {
        "username": "admin",
        "password_hash": "$2y$12$examplehash",
        "full_name": "System Admin",
        "role": "admin",
        "email": "admin@clinic.test",
    },
    {
        "username": "reception1",
        "password_hash": "$2y$12$examplehash2",
        "full_name": "Front Desk",
        "role": "reception",
        "email": "reception@clinic.test",
    },
]

DOCTORS = [
    {
        "staff_number": "DOC001",
        "first_name": "Alice",
        "last_name": "Wanjiru",
        "specialty": "General Practice",
        "email": "alice.w@clinic.test",
    },
    {
        "staff_number": "DOC002",
        "first_name": "John",
        "last_name": "Otieno",
        "specialty": "Pediatrics",
        "email": "john.o@clinic.test",
    },
]

PATIENTS = [
    {
        "national_id": "P123456",
        "first_name": "Mary",
        "last_name": "Achieng",
        "date_of_birth": date(1990, 4, 12),
        "gender": "female",
        "email": "mary.a@example.com",
        "phone": "+254711000001",
        "address": "Nairobi",
    },
    {
        "national_id": "P789012",
        "first_name": "David",
        "last_name": "Kamau",
        "date_of_birth": date(1985, 1, 30),
        "gender": "male",
        "email": "david.k@example.com",
        "phone": "+254711000002",
        "address": "Nairobi",
    },
]

SERVICES = [
    {
        "code": "CONS",
        "name": "Consultation",
        "description": "General consultation",
        "standard_price": Decimal("500.00"),
    },
    {
        "code": "PEDS",
        "name": "Pediatric Consultation",
        "description": "Consultation for children",
        "standard_price": Decimal("600.00"),
    },
    {
        "code": "XRAY",
        "name": "X-Ray",
        "description": "Chest X-Ray",
        "standard_price": Decimal("1200.00"),
    },
]

DOCTOR_SERVICES = [
    {"doctor_id": 1, "service_id": 1, "price": Decimal("500.00")},
    {"doctor_id": 2, "service_id": 2, "price": Decimal("600.00")},
]

# Alice works Monday to Friday, 09:00-13:00, at Central Clinic
SCHEDULES = [
    {
        "doctor_id": 1,
        "clinic_id": 1,
        "day_of_week": day_of_week,
        "start_time": time(9, 0),
        "end_time": time(13, 0),
        "slot_length_minutes": 15,
    }
    for day_of_week in range(1, 6)
]


async def load_sample_data(db: AsyncSession) -> None:
    """
    Insert the sample dataset into empty tables and commit.

    Ids are assigned by the database in insertion order, so the
    cross-references above assume a freshly created schema.
    """
    for table, rows in (
        (clinics, CLINICS),
        (rooms, ROOMS),
        (users, USERS),
        (doctors, DOCTORS),
        (patients, PATIENTS),
        (services, SERVICES),
        (doctor_services, DOCTOR_SERVICES),
        (schedules, SCHEDULES),
    ):
        await db.execute(insert(table), rows)
    await db.commit()
