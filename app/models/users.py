"""User model definition using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    func,
)

from app.models.metadata import metadata

# System users: admins, receptionists and clinical staff
users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("full_name", String(120), nullable=False),
    Column("role", String(20), nullable=False, server_default="reception"),
    Column("email", String(150), unique=True),
    Column("phone", String(30)),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    CheckConstraint(
        "role IN ('admin', 'reception', 'doctor', 'nurse', 'lab_tech')",
        name="users_role_check",
    ),
)
