"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    appointments,
    billing,
    doctors,
    health,
    prescriptions,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(billing.router, prefix="/appointments", tags=["Billing"])
api_router.include_router(prescriptions.router, prefix="/appointments", tags=["Prescriptions"])
api_router.include_router(doctors.router, prefix="/doctors", tags=["Doctors"])
