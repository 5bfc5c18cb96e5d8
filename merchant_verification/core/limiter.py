"""Rate limiter instance for SlowAPI.

Shared so main (app.state.limiter) and route modules use the same instance
without circular imports.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

SUBMIT_LIMIT = "30/minute"
WEBHOOK_LIMIT = "300/minute"

limit_submit = limiter.limit(SUBMIT_LIMIT)
limit_webhook = limiter.limit(WEBHOOK_LIMIT)
