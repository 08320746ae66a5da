"""Per-caller request limits for the AI generation routes.

Leaky bucket held in a Redis hash ``{level, ts}``. Every request pours one
unit in; the level drains at ``RATE_LIMIT_AI_RPM / 60`` units per second.
A request that would push the level above ``RATE_LIMIT_AI_BURST`` is refused
with 429 and a ``Retry-After`` hint. The whole read-modify-write runs as one
Lua script so concurrent requests cannot both take the last slot.

Buckets are keyed by the bearer token's subject when there is one, otherwise
by client IP. If Redis is unreachable requests are let through.

```python
@router.post("/generate-quiz")
def generate(..., _rl: None = Depends(require_ai_rate_limit)):
    ...
```
"""

import logging
import time

import redis
from fastapi import HTTPException, Request, status

from quiz_builder.config import settings
from quiz_builder.core.security import token_subject

logger = logging.getLogger(__name__)

_pool: redis.ConnectionPool | None = None

# KEYS[1] bucket, ARGV = capacity, drain per second, now (float seconds).
# Returns 0 when the request fits, else whole seconds until it would.
_BUCKET_LUA = """
local capacity = tonumber(ARGV[1])
local drain = tonumber(ARGV[2])
local now = tonumber(ARGV[3])

local state = redis.call('HMGET', KEYS[1], 'level', 'ts')
local level = tonumber(state[1]) or 0
local ts = tonumber(state[2]) or now
level = math.max(0, level - math.max(0, now - ts) * drain)

local wait = 0
if level + 1 > capacity then
    wait = math.ceil((level + 1 - capacity) / drain)
else
    level = level + 1
end

redis.call('HSET', KEYS[1], 'level', level, 'ts', now)
redis.call('EXPIRE', KEYS[1], math.ceil(capacity / drain) + 60)
return wait
"""


def _get_redis() -> redis.Redis:
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL, decode_responses=True, max_connections=10
        )
    return redis.Redis(connection_pool=_pool)


def _client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        sub = token_subject(auth[7:].strip())
        if sub:
            return f"rl:ai:u:{sub}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "unknown"
    return f"rl:ai:ip:{ip}"


def seconds_until_allowed(bucket_key: str) -> int:
    """0 if a request on *bucket_key* may proceed now, else the wait in seconds."""
    rpm = settings.RATE_LIMIT_AI_RPM
    if rpm <= 0:
        return 0
    try:
        wait = _get_redis().eval(
            _BUCKET_LUA, 1, bucket_key, settings.RATE_LIMIT_AI_BURST, rpm / 60.0, time.time()
        )
    except redis.RedisError as e:
        logger.warning("Rate limiter unavailable, allowing request: %s", e)
        return 0
    return int(wait or 0)


async def require_ai_rate_limit(request: Request) -> None:
    """FastAPI dependency: 429 with ``Retry-After`` when the caller's bucket is full."""
    key = _client_key(request)
    wait = seconds_until_allowed(key)
    if wait:
        logger.info("Rate-limited %s for %ss", key, wait)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many generation requests, try again shortly",
            headers={"Retry-After": str(wait)},
        )
