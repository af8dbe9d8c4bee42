"""
api/limiter.py -- The one slowapi Limiter for the NeonThreads API.

api/main.py mounts it (app.state.limiter + SlowAPIMiddleware) and
api/routes/auth.py throttles POST /api/login with it, at the per-client-IP
rate in Settings.login_rate_limit.

Counters live in process memory, so every worker keeps its own budget and
a restart resets them. A second Limiter instance would keep separate
counters and the login limit would never trip.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
