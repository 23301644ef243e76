"""Doctor model definition using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    func,
    text,
)

from app.models.metadata import metadata

# The doctor row doubles as the lock that serializes bookings for that doctor
doctors = Table(
    "doctors",
    metadata,
    Column("doctor_id", Integer, primary_key=True, autoincrement=True),
    Column("staff_number", String(50), nullable=False, unique=True),
    Column("first_name", String(80), nullable=False),
    Column("last_name", String(80), nullable=False),
    Column("specialty", String(120)),
    Column("email", String(150), unique=True),
    Column("phone", String(30)),
    Column("active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)
