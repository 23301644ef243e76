"""Medical record model definition using SQLAlchemy Core."""

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

# One record per patient
medical_records = Table(
    "medical_records",
    metadata,
    Column("record_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "patient_id",
        Integer,
        ForeignKey("patients.patient_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("blood_type", String(10)),
    Column("allergies", Text),
    Column("chronic_conditions", Text),
    Column("notes", Text),
    Column(
        "last_updated",
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
)
