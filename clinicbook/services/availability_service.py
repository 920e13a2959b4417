"""Database-backed entry points for slot computation.

Each function loads the rows for one doctor and hands them to the pure
functions in ``clinicbook.scheduling``.
"""

from datetime import date, datetime, time

from sqlalchemy.orm import Session

from clinicbook.core.errors import InvalidInterval, NotFound
from clinicbook.models.appointment import Appointment
from clinicbook.models.availability import BlockedInterval, WeeklyAvailabilityRule
from clinicbook.models.doctor import Doctor
from clinicbook.scheduling import filters, slots, weekly, window
from clinicbook.scheduling.time_utils import parse_hhmm


def get_doctor(db: Session, doctor_id: int) -> Doctor:
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if doctor is None:
        raise NotFound('Doctor not found.')
    return doctor


def get_active_doctor_by_slug(db: Session, slug: str) -> Doctor:
    doctor = db.query(Doctor).filter(
        Doctor.slug == slug.strip().lower(),
        Doctor.is_active.is_(True),
    ).first()
    if doctor is None:
        raise NotFound('Doctor not found or booking unavailable.')
    return doctor


def load_rules(db: Session, doctor_id: int) -> list[WeeklyAvailabilityRule]:
    return db.query(WeeklyAvailabilityRule).filter(
        WeeklyAvailabilityRule.doctor_id == doctor_id,
        WeeklyAvailabilityRule.is_available.is_(True),
    ).order_by(WeeklyAvailabilityRule.day_of_week.asc(), WeeklyAvailabilityRule.start_time.asc()).all()


def load_blocked_intervals(db: Session, doctor_id: int, start_date: date, end_date: date) -> list[BlockedInterval]:
    return db.query(BlockedInterval).filter(
        BlockedInterval.doctor_id == doctor_id,
        BlockedInterval.date >= start_date,
        BlockedInterval.date <= end_date,
    ).all()


def load_live_appointments(db: Session, doctor_id: int, start_date: date, end_date: date) -> list[Appointment]:
    return db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date >= start_date,
        Appointment.appointment_date <= end_date,
        Appointment.status != window.CANCELLED,
    ).all()


def resolve_weekly_intervals(db: Session, doctor_id: int, target_date: date) -> list[weekly.Interval]:
    get_doctor(db, doctor_id)
    return weekly.resolve_weekly_intervals(load_rules(db, doctor_id), target_date)


def generate_free_slots(
    db: Session,
    doctor_id: int,
    start_date: date,
    end_date: date,
    exclude_appointment_id: int | None = None,
) -> list[slots.DaySlots]:
    get_doctor(db, doctor_id)
    if end_date < start_date:
        return []

    return slots.generate_free_slots(
        load_rules(db, doctor_id),
        load_blocked_intervals(db, doctor_id, start_date, end_date),
        load_live_appointments(db, doctor_id, start_date, end_date),
        start_date,
        end_date,
        exclude_appointment_id=exclude_appointment_id,
    )


def describe_day(db: Session, doctor_id: int, target_date: date, now: datetime) -> list[slots.SlotStatus]:
    return slots.describe_day_slots(
        load_rules(db, doctor_id),
        load_blocked_intervals(db, doctor_id, target_date, target_date),
        load_live_appointments(db, doctor_id, target_date, target_date),
        target_date,
        now,
    )


def is_slot_free(
    db: Session,
    doctor_id: int,
    target_date: date,
    slot_time: str | time,
    exclude_appointment_id: int | None = None,
) -> bool:
    """True when ``slot_time`` is an offered start on ``target_date`` that is neither blocked nor booked."""
    get_doctor(db, doctor_id)

    if not slots.is_candidate_start(load_rules(db, doctor_id), target_date, slot_time):
        return False

    if filters.is_blocked(target_date, slot_time, load_blocked_intervals(db, doctor_id, target_date, target_date)):
        return False

    return not filters.is_booked(
        target_date,
        slot_time,
        load_live_appointments(db, doctor_id, target_date, target_date),
        exclude_appointment_id=exclude_appointment_id,
    )


def get_modification_window(appointment: Appointment, now: datetime) -> window.ModificationWindow:
    return window.get_modification_window(
        appointment.created_at,
        appointment.appointment_date,
        appointment.time_slot,
        now,
    )


def validate_interval(start_time: str | time, end_time: str | time) -> None:
    if parse_hhmm(start_time) >= parse_hhmm(end_time):
        raise InvalidInterval('Start time must be before end time.')


def create_rule(
    db: Session,
    doctor_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    slot_duration: int,
    is_available: bool = True,
) -> WeeklyAvailabilityRule:
    validate_interval(start_time, end_time)
    if not 0 <= day_of_week <= 6:
        raise InvalidInterval('Day of week must be between 0 (Sunday) and 6 (Saturday).')
    if slot_duration is None or slot_duration <= 0:
        raise InvalidInterval('Slot duration must be a positive number of minutes.')

    rule = WeeklyAvailabilityRule(
        doctor_id=doctor_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        slot_duration=slot_duration,
        is_available=is_available,
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


def delete_rule(db: Session, doctor_id: int, rule_id: int) -> None:
    rule = db.query(WeeklyAvailabilityRule).filter(
        WeeklyAvailabilityRule.id == rule_id,
        WeeklyAvailabilityRule.doctor_id == doctor_id,
    ).first()
    if rule is None:
        raise NotFound('Availability rule not found.')
    db.delete(rule)
    db.commit()


def create_blocked_interval(
    db: Session,
    doctor_id: int,
    blocked_date: date,
    start_time: time,
    end_time: time,
    reason: str | None = None,
    is_all_day: bool = False,
) -> BlockedInterval:
    validate_interval(start_time, end_time)

    blocked = BlockedInterval(
        doctor_id=doctor_id,
        date=blocked_date,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
        is_all_day=is_all_day,
    )
    db.add(blocked)
    db.commit()
    db.refresh(blocked)
    return blocked


def delete_blocked_interval(db: Session, doctor_id: int, blocked_id: int) -> None:
    blocked = db.query(BlockedInterval).filter(
        BlockedInterval.id == blocked_id,
        BlockedInterval.doctor_id == doctor_id,
    ).first()
    if blocked is None:
        raise NotFound('Blocked time not found.')
    db.delete(blocked)
    db.commit()
