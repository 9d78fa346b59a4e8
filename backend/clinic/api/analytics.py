"""Dashboard statistics."""
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.guards import AnalyticsPermissions
from ..models.base import get_db
from ..models.patient import Patient
from ..models.user import User

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/dashboard-stats", dependencies=[Depends(AnalyticsPermissions.view)])
def dashboard_stats(db: Session = Depends(get_db)):
    total_patients = db.query(func.count(Patient.id)).filter(Patient.is_active == True).scalar()
    by_specialty = (
        db.query(Patient.specialty, func.count(Patient.id))
        .filter(Patient.is_active == True)
        .group_by(Patient.specialty)
        .all()
    )
    by_role = db.query(User.role, func.count(User.id)).group_by(User.role).all()
    return {
        "total_patients": total_patients or 0,
        "patients_by_specialty": {name or "unassigned": count for name, count in by_specialty},
        "users_by_role": {role: count for role, count in by_role},
    }
