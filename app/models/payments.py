"""Payment model definition using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    func,
)

from app.models.metadata import metadata

# Partial payments allowed: one appointment, many payments
payments = Table(
    "payments",
    metadata,
    Column("payment_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "appointment_id",
        Integer,
        ForeignKey("appointments.appointment_id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("amount", Numeric(10, 2), nullable=False),
    Column("method", String(20), nullable=False),
    Column("transaction_ref", String(150)),
    Column("paid_at", DateTime, nullable=False, server_default=func.now()),
    Column(
        "created_by",
        Integer,
        ForeignKey("users.user_id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    ),
    CheckConstraint("amount >= 0", name="payments_amount_check"),
    CheckConstraint(
        "method IN ('cash', 'card', 'mobile_money', 'insurance')",
        name="payments_method_check",
    ),
)
