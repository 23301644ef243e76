"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services.appointment_service import AppointmentService
from app.services.audit_service import AuditService
from app.services.billing_service import BillingService
from app.services.prescription_service import PrescriptionService


def get_appointment_service(db: Annotated[AsyncSession, Depends(get_db)]) -> AppointmentService:
    """Get appointment service bound to the request session."""
    return AppointmentService(db)


def get_billing_service(db: Annotated[AsyncSession, Depends(get_db)]) -> BillingService:
    """Get billing service bound to the request session."""
    return BillingService(db)


def get_prescription_service(db: Annotated[AsyncSession, Depends(get_db)]) -> PrescriptionService:
    """Get prescription service bound to the request session."""
    return PrescriptionService(db)


def get_audit_service(db: Annotated[AsyncSession, Depends(get_db)]) -> AuditService:
    """Get audit service bound to the request session."""
    return AuditService(db)


# Type aliases for dependency injection
Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]
Billing = Annotated[BillingService, Depends(get_billing_service)]
Prescriptions = Annotated[PrescriptionService, Depends(get_prescription_service)]
Audit = Annotated[AuditService, Depends(get_audit_service)]
