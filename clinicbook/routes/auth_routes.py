from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_current_user, get_db
from clinicbook.models.doctor import Doctor
from clinicbook.models.user import User

router = APIRouter()


@router.get("/me")
def me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    doctor = db.query(Doctor).filter(Doctor.user_id == current_user.id).first()
    return {
        "email": current_user.email,
        "role": current_user.role,
        "doctor_slug": doctor.slug if doctor else None,
    }
