import csv
import io
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..core.guards import PatientPermissions
from ..models.base import get_db, generate_uuid
from ..models.patient import Patient

router = APIRouter(prefix="/patients", tags=["patients"])

EXPORT_COLUMNS = ("mrn", "first_name", "last_name", "date_of_birth", "gender", "specialty")


class PatientCreate(BaseModel):
    mrn: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    specialty: Optional[str] = None
    doctor_id: Optional[str] = None
    notes: Optional[str] = None


class PatientUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    specialty: Optional[str] = None
    doctor_id: Optional[str] = None
    notes: Optional[str] = None


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    mrn: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date]
    gender: Optional[str]
    specialty: Optional[str]
    doctor_id: Optional[str]


def _get_or_404(db: Session, patient_id: str) -> Patient:
    patient = db.query(Patient).filter(Patient.id == patient_id, Patient.is_active == True).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.get("/", response_model=List[PatientResponse], dependencies=[Depends(PatientPermissions.view)])
def list_patients(
    specialty: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
):
    q = db.query(Patient).filter(Patient.is_active == True)
    if specialty:
        q = q.filter(Patient.specialty == specialty)
    return q.order_by(Patient.last_name).offset(skip).limit(limit).all()


@router.get("/export", dependencies=[Depends(PatientPermissions.export)])
def export_patients(db: Session = Depends(get_db)):
    """CSV export of all active patients."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    for p in db.query(Patient).filter(Patient.is_active == True).order_by(Patient.last_name):
        writer.writerow([getattr(p, col) or "" for col in EXPORT_COLUMNS])
    return Response(
        content=buf.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="patients.csv"'},
    )


@router.get("/{patient_id}", response_model=PatientResponse, dependencies=[Depends(PatientPermissions.view)])
def get_patient(patient_id: str, db: Session = Depends(get_db)):
    return _get_or_404(db, patient_id)


@router.post(
    "/",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(PatientPermissions.add)],
)
def create_patient(patient_in: PatientCreate, db: Session = Depends(get_db)):
    if db.query(Patient).filter(Patient.mrn == patient_in.mrn).first():
        raise HTTPException(status_code=400, detail="Patient MRN already exists")
    patient = Patient(id=generate_uuid(), **patient_in.model_dump())
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@router.put("/{patient_id}", response_model=PatientResponse, dependencies=[Depends(PatientPermissions.edit)])
def update_patient(patient_id: str, patient_in: PatientUpdate, db: Session = Depends(get_db)):
    patient = _get_or_404(db, patient_id)
    for field, value in patient_in.model_dump(exclude_unset=True).items():
        setattr(patient, field, value)
    db.commit()
    db.refresh(patient)
    return patient


@router.delete(
    "/{patient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(PatientPermissions.delete)],
)
def delete_patient(patient_id: str, db: Session = Depends(get_db)):
    """Soft delete; the record stays for audit purposes."""
    patient = _get_or_404(db, patient_id)
    patient.is_active = False
    db.commit()
