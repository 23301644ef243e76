"""Clinic and room model definitions using SQLAlchemy Core."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)

from app.models.metadata import metadata

clinics = Table(
    "clinics",
    metadata,
    Column("clinic_id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(150), nullable=False, unique=True),
    Column("address", Text),
    Column("phone", String(30)),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

# Rooms belong to a clinic; appointments may optionally reference one
rooms = Table(
    "rooms",
    metadata,
    Column("room_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "clinic_id",
        Integer,
        ForeignKey("clinics.clinic_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    Column("room_number", String(50), nullable=False),
    Column("description", String(255)),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    UniqueConstraint("clinic_id", "room_number", name="uq_rooms_clinic_room_number"),
)
