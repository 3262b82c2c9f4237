"""Rate limiting configuration using slowapi.

Provides a module-level Limiter instance wired into the FastAPI app in
main.py. Counters live in process memory, keyed by client address, and are
lost on restart.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from constructerp.config import settings

# Default: 100 requests per 15 minutes per client IP for all endpoints.
# Individual routes can override with @limiter.limit("N/period").
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT],
)
