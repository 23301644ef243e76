"""Database models."""

from app.models.appointments import appointment_services, appointments
from app.models.audit_logs import audit_logs
from app.models.clinics import clinics, rooms
from app.models.doctors import doctors
from app.models.medical_records import medical_records
from app.models.metadata import metadata
from app.models.patients import patients
from app.models.payments import payments
from app.models.prescriptions import prescription_items, prescriptions
from app.models.schedules import schedules
from app.models.services import doctor_services, services
from app.models.users import users

__all__ = [
    "appointment_services",
    "appointments",
    "audit_logs",
    "clinics",
    "doctor_services",
    "doctors",
    "medical_records",
    "metadata",
    "patients",
    "payments",
    "prescription_items",
    "prescriptions",
    "rooms",
    "schedules",
    "services",
    "users",
]
