from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from clinicbook.core import config


connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False


def ensure_booking_schema() -> None:
    """Bring tables created by older releases up to the current columns and indexes."""
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        if 'appointments' not in table_names:
            _booking_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('cancel_reason', 'ALTER TABLE appointments ADD COLUMN cancel_reason TEXT'),
            ('edit_token', 'ALTER TABLE appointments ADD COLUMN edit_token VARCHAR(36)'),
            ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
            ('reminder_sent_24h', 'ALTER TABLE appointments ADD COLUMN reminder_sent_24h BOOLEAN NOT NULL DEFAULT FALSE'),
            ('reminder_sent_1h', 'ALTER TABLE appointments ADD COLUMN reminder_sent_1h BOOLEAN NOT NULL DEFAULT FALSE'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot '
                    "ON appointments(doctor_id, appointment_date, time_slot) WHERE status <> 'cancelled'"
                )
            )
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_edit_token ON appointments(edit_token)')
            )
            if 'blocked_slots' in table_names:
                connection.execute(
                    text('CREATE INDEX IF NOT EXISTS idx_blocked_slots_doctor_date ON blocked_slots(doctor_id, date)')
                )

        _booking_schema_checked = True
