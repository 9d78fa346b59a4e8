"""
Demo data seeder.

Creates one demo user for each declared role plus a sample patient so every
permission path can be walked through right after a fresh start. Users are
looked up by email, so the seeder is safe to call on every startup.
"""
import logging
from datetime import date

from .core.permissions import Role
from .models.base import SessionLocal, Base, engine, generate_uuid
from .models.user import User
from .models.patient import Patient

logger = logging.getLogger(__name__)

DEMO_USERS = {
    Role.SUPER_ADMIN: ("admin@clinic.demo", "admin_demo", "Demo", "Admin", None),
    Role.DOCTOR: ("doctor@clinic.demo", "demo_doctor", "Demo", "Doctor", "Cardiology"),
    Role.TECHNICIAN: ("tech@clinic.demo", "demo_technician", "Demo", "Technician", None),
}

DEMO_PATIENT_MRN = "DEMO-MRN-001"


def seed_demo_data() -> None:
    """Create demo users and a patient if they do not already exist."""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        doctor = _seed_users(db)
        _seed_patient(db, doctor.id if doctor else None)
    finally:
        db.close()


# ── helpers ──────────────────────────────────────────────────────────────────

def _seed_users(db):
    doctor = None
    for role, (email, username, first_name, last_name, specialty) in DEMO_USERS.items():
        existing = db.query(User).filter(User.email == email).first()
        if not existing:
            existing = User(
                id=generate_uuid(),
                email=email,
                username=username,
                first_name=first_name,
                last_name=last_name,
                role=role.value,
                specialty=specialty,
            )
            db.add(existing)
            db.commit()
            logger.info("Created demo %s: %s", role.value, email)
        if role is Role.DOCTOR:
            doctor = existing
    return doctor


def _seed_patient(db, doctor_id) -> Patient:
    patient = db.query(Patient).filter(Patient.mrn == DEMO_PATIENT_MRN).first()
    if not patient:
        patient = Patient(
            id=generate_uuid(),
            mrn=DEMO_PATIENT_MRN,
            first_name="John",
            last_name="Demo",
            date_of_birth=date(1960, 6, 15),
            gender="male",
            specialty="Cardiology",
            doctor_id=doctor_id,
            notes="Pre-seeded demo patient.",
        )
        db.add(patient)
        db.commit()
        db.refresh(patient)
        logger.info("Created demo patient: %s %s (MRN: %s)", patient.first_name, patient.last_name, patient.mrn)
    return patient
