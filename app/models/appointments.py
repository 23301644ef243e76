"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
    text,
)

from app.models.metadata import metadata

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("appointment_id", Integer, primary_key=True, autoincrement=True),
    # References
    Column(
        "patient_id",
        Integer,
        ForeignKey("patients.patient_id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    ),
    Column(
        "doctor_id",
        Integer,
        ForeignKey("doctors.doctor_id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    ),
    Column(
        "clinic_id",
        Integer,
        ForeignKey("clinics.clinic_id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    ),
    Column(
        "room_id",
        Integer,
        ForeignKey("rooms.room_id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    ),
    # Half-open booking window [scheduled_start, scheduled_end)
    Column("scheduled_start", DateTime, nullable=False),
    Column("scheduled_end", DateTime, nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default="scheduled"),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column(
        "created_by",
        Integer,
        ForeignKey("users.user_id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    ),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'checked_in', 'in_consultation', "
        "'completed', 'cancelled', 'no_show')",
        name="appointments_status_check",
    ),
    CheckConstraint("scheduled_start < scheduled_end", name="appointments_time_range_check"),
)

Index("idx_appointments_patient", appointments.c.patient_id)
Index("idx_appointments_doctor", appointments.c.doctor_id)
Index("idx_appointments_scheduled", appointments.c.scheduled_start)

# Services delivered during an appointment, priced at booking time
appointment_services = Table(
    "appointment_services",
    metadata,
    Column(
        "appointment_id",
        Integer,
        ForeignKey("appointments.appointment_id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    ),
    Column(
        "service_id",
        Integer,
        ForeignKey("services.service_id", ondelete="RESTRICT", onupdate="CASCADE"),
        primary_key=True,
    ),
    Column(
        "doctor_id",
        Integer,
        ForeignKey("doctors.doctor_id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    ),
    Column("unit_price", Numeric(10, 2), nullable=False),
    Column("quantity", Integer, nullable=False, server_default=text("1")),
    CheckConstraint("quantity > 0", name="appointment_services_quantity_check"),
)
