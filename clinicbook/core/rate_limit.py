"""Request throttling for public, unauthenticated endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from clinicbook.core import config


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=config.RATELIMIT_STORAGE_URI,
    enabled=config.RATELIMIT_ENABLED,
)
