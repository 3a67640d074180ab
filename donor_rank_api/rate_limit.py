"""Rate limiting utilities for API endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from donor_rank_api.config import get_settings

settings = get_settings()

# Initialize rate limiter (shared across app)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

# Pre-configured rate limit strings for different endpoint types
RATE_LIMIT_DEFAULT = settings.rate_limit_default
RATE_LIMIT_STATS = settings.rate_limit_stats
RATE_LIMIT_COMMAND = settings.rate_limit_command
