"""Billable service model definitions using SQLAlchemy Core."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
    text,
)

from app.models.metadata import metadata

# Services offered by the clinic, e.g. consultation or x-ray
services = Table(
    "services",
    metadata,
    Column("service_id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(30), nullable=False, unique=True),
    Column("name", String(150), nullable=False),
    Column("description", Text),
    Column("standard_price", Numeric(10, 2), nullable=False, server_default=text("0.00")),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

# Many-to-many: which doctor offers which service, with an optional own price
doctor_services = Table(
    "doctor_services",
    metadata,
    Column(
        "doctor_id",
        Integer,
        ForeignKey("doctors.doctor_id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    ),
    Column(
        "service_id",
        Integer,
        ForeignKey("services.service_id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    ),
    Column("price", Numeric(10, 2), nullable=True),
)
