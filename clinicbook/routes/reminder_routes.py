import secrets
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_db
from clinicbook.core import config
from clinicbook.routes.common import database_unavailable, ensure_database_ready
from clinicbook.services import reminder_service

router = APIRouter(tags=['cron'])


class ReminderRunResponse(BaseModel):
    reminders_24h: int
    reminders_1h: int
    message: str


def verify_cron_secret(authorization: str | None = Header(default=None)) -> None:
    if not config.CRON_SECRET:
        return
    expected = f'Bearer {config.CRON_SECRET}'
    if authorization is None or not secrets.compare_digest(authorization, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Unauthorized')


@router.get('/reminders', response_model=ReminderRunResponse)
def run_reminders(
    _: None = Depends(verify_cron_secret),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        counts = reminder_service.send_due_reminders(db, datetime.now())
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return ReminderRunResponse(
        **counts,
        message=f"Sent {counts['reminders_24h']} 24-hour reminders and {counts['reminders_1h']} 1-hour reminders",
    )
