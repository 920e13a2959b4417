import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from clinicbook.core import config
from clinicbook.core.rate_limit import limiter
from clinicbook.database import Base, engine, ensure_booking_schema
from clinicbook.models import appointment, availability, doctor, form, user  # noqa: F401
from clinicbook.routes import (
    appointment_routes,
    auth_routes,
    availability_routes,
    booking_routes,
    form_routes,
    reminder_routes,
)

logging.basicConfig(
    level=logging.DEBUG if config.APP_ENV.lower() == 'development' else logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='clinicbook')
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Booking API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(booking_routes.router, prefix='/booking')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(form_routes.router, prefix='/forms')
app.include_router(reminder_routes.router, prefix='/cron')
