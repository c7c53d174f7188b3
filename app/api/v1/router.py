"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from app.api.v1 import audit, auth_staff, health, notifications, patients

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Authentication
api_router.include_router(
    auth_staff.router,
    prefix="/auth/staff",
    tags=["auth-staff"],
)

# Patients and care pathways
api_router.include_router(patients.router)

# Notification inbox
api_router.include_router(notifications.router)

# Audit
api_router.include_router(
    audit.router,
    prefix="/audit",
    tags=["audit"],
)
