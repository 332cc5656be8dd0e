"""Rate limiting shared by every router (``slowapi``, keyed by client IP)."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from driver_onboarding.config import settings

limiter = Limiter(key_func=get_remote_address)

RATE_LIMIT = settings.rate_limit
