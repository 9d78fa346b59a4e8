"""
Clinic Patient Management API.
Role-based access control over patients, users, analytics and settings.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import analytics, auth, patients, settings as settings_api, users
from .core.config import settings
from .core.errors import AccessDenied, access_denied_handler
from .models.base import Base, engine
from .models import patient, setting, user  # noqa: F401  ensure tables are registered
from .seed_demo import seed_demo_data

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# NOTE: In production, use migrations instead of create_all()
Base.metadata.create_all(bind=engine)

if settings.SEED_DEMO_DATA:
    seed_demo_data()

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Patient registration and clinic workflows gated by role-based permissions.",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # TODO: Restrict to specific origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AccessDenied, access_denied_handler)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(users.roles_router, prefix="/api/v1")
app.include_router(patients.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")
app.include_router(settings_api.router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": settings.APP_NAME, "version": settings.VERSION}
