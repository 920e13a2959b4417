from datetime import date, time

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinicbook.auth.dependencies import get_current_doctor, get_db
from clinicbook.core import config
from clinicbook.core.errors import SchedulingError
from clinicbook.models.availability import BlockedInterval, WeeklyAvailabilityRule
from clinicbook.models.doctor import Doctor
from clinicbook.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from clinicbook.services import availability_service

router = APIRouter(tags=['availability'])

MIN_SLOT_DURATION_MINUTES = 15
MAX_SLOT_DURATION_MINUTES = 120


class CreateRuleRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    slot_duration: int = Field(
        default=config.DEFAULT_SLOT_DURATION_MINUTES,
        ge=MIN_SLOT_DURATION_MINUTES,
        le=MAX_SLOT_DURATION_MINUTES,
    )
    is_available: bool = True

    @model_validator(mode='after')
    def validate_window(self) -> 'CreateRuleRequest':
        if self.start_time >= self.end_time:
            raise ValueError('Start time must be before end time.')
        return self


class CreateBlockedIntervalRequest(BaseModel):
    date: date
    start_time: time
    end_time: time
    reason: str | None = None
    is_all_day: bool = False

    @model_validator(mode='after')
    def validate_window(self) -> 'CreateBlockedIntervalRequest':
        if self.start_time >= self.end_time:
            raise ValueError('Start time must be before end time.')
        if self.reason is not None:
            self.reason = self.reason.strip() or None
        return self


class RuleResponse(BaseModel):
    id: int
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration: int
    is_available: bool

    class Config:
        from_attributes = True


class BlockedIntervalResponse(BaseModel):
    id: int
    date: date
    start_time: time
    end_time: time
    reason: str | None = None
    is_all_day: bool

    class Config:
        from_attributes = True


class AvailabilityOverviewResponse(BaseModel):
    rules: list[RuleResponse]
    blocked: list[BlockedIntervalResponse]


@router.get('', response_model=AvailabilityOverviewResponse)
def get_availability(
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rules = db.query(WeeklyAvailabilityRule).filter(
            WeeklyAvailabilityRule.doctor_id == doctor.id,
        ).order_by(WeeklyAvailabilityRule.day_of_week.asc(), WeeklyAvailabilityRule.start_time.asc()).all()

        blocked = db.query(BlockedInterval).filter(
            BlockedInterval.doctor_id == doctor.id,
        ).order_by(BlockedInterval.date.asc(), BlockedInterval.start_time.asc()).all()

        return AvailabilityOverviewResponse(
            rules=[RuleResponse.model_validate(rule) for rule in rules],
            blocked=[BlockedIntervalResponse.model_validate(item) for item in blocked],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/rules', response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
def create_rule(
    data: CreateRuleRequest,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return availability_service.create_rule(
            db,
            doctor.id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            slot_duration=data.slot_duration,
            is_available=data.is_available,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/rules/{rule_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
    rule_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        availability_service.delete_rule(db, doctor.id, rule_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/blocked', response_model=BlockedIntervalResponse, status_code=status.HTTP_201_CREATED)
def create_blocked_interval(
    data: CreateBlockedIntervalRequest,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return availability_service.create_blocked_interval(
            db,
            doctor.id,
            blocked_date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=data.reason,
            is_all_day=data.is_all_day,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/blocked/{blocked_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_interval(
    blocked_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        availability_service.delete_blocked_interval(db, doctor.id, blocked_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
