"""Patient model definition using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Table,
    Text,
    func,
)

from app.models.metadata import metadata

patients = Table(
    "patients",
    metadata,
    Column("patient_id", Integer, primary_key=True, autoincrement=True),
    Column("national_id", String(50), unique=True),
    Column("first_name", String(80), nullable=False),
    Column("last_name", String(80), nullable=False),
    Column("date_of_birth", Date),
    Column("gender", String(10)),
    Column("email", String(150)),
    Column("phone", String(30)),
    Column("address", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    CheckConstraint(
        "gender IS NULL OR gender IN ('male', 'female', 'other')",
        name="patients_gender_check",
    ),
)
