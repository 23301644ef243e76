"""Doctor schedule model definition using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    Table,
    Time,
    func,
    text,
)

from app.models.metadata import metadata

# Repeating weekly availability block for a doctor at a clinic
schedules = Table(
    "schedules",
    metadata,
    Column("schedule_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "doctor_id",
        Integer,
        ForeignKey("doctors.doctor_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    Column(
        "clinic_id",
        Integer,
        ForeignKey("clinics.clinic_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    # 0=Sunday .. 6=Saturday
    Column("day_of_week", SmallInteger, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("slot_length_minutes", SmallInteger, nullable=False, server_default=text("15")),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    CheckConstraint("day_of_week BETWEEN 0 AND 6", name="schedules_day_of_week_check"),
    CheckConstraint("start_time < end_time", name="schedules_time_range_check"),
)
