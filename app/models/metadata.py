"""Shared metadata for all clinic booking tables."""

from sqlalchemy import MetaData

# Single registry so foreign keys resolve across modules
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s",
        "pk": "pk_%(table_name)s",
    }
)
