"""Audit log model definition using SQLAlchemy Core."""

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)

from app.models.metadata import metadata

audit_logs = Table(
    "audit_logs",
    metadata,
    # SQLite only autoincrements INTEGER primary keys
    Column(
        "log_id",
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    ),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("action", String(200), nullable=False),
    Column("object_type", String(80)),
    Column("object_id", String(80)),
    Column("details", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

Index("idx_audit_logs_object", audit_logs.c.object_type, audit_logs.c.object_id)
