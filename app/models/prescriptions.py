"""Prescription model definitions using SQLAlchemy Core."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    func,
)

from app.models.metadata import metadata

prescriptions = Table(
    "prescriptions",
    metadata,
    Column("prescription_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "appointment_id",
        Integer,
        ForeignKey("appointments.appointment_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "prescribed_by",
        Integer,
        ForeignKey("doctors.doctor_id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    ),
    Column("issued_at", DateTime, nullable=False, server_default=func.now()),
    Column("instructions", Text),
)

# Medicines within a prescription, numbered from 1
prescription_items = Table(
    "prescription_items",
    metadata,
    Column(
        "prescription_id",
        Integer,
        ForeignKey("prescriptions.prescription_id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    ),
    Column("item_no", Integer, primary_key=True, autoincrement=False),
    Column("medicine_name", String(255), nullable=False),
    Column("dose", String(100)),
    Column("frequency", String(100)),
    Column("duration", String(100)),
)
