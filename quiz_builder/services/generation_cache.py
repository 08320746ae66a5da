"""Redis cache of generated candidate questions.

The same generation request (same source text or document, count,
difficulties and types, same model) returns the cached candidates instead of
calling the LLM again. Keys are ``quiz_gen:<kind>:<model>:<sha256 prefix>``.
Cache failures are logged and treated as misses.
"""

import hashlib
import json
import logging
from typing import Any

import redis

from quiz_builder.config import settings

logger = logging.getLogger(__name__)

_pool: redis.ConnectionPool | None = None

Questions = list[dict[str, Any]]


def _get_redis() -> redis.Redis:
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL, decode_responses=True, max_connections=10
        )
    return redis.Redis(connection_pool=_pool)


def cache_key(kind: str, params: dict[str, Any]) -> str:
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:24]
    return f"quiz_gen:{kind}:{settings.GEMINI_MODEL}:{digest}"


def cached_questions(kind: str, params: dict[str, Any]) -> Questions | None:
    if not settings.GENERATION_CACHE_ENABLED:
        return None
    key = cache_key(kind, params)
    try:
        raw = _get_redis().get(key)
    except redis.RedisError as e:
        logger.warning("Generation cache read failed: %s", e)
        return None
    if not raw:
        return None
    try:
        questions = json.loads(raw)
    except ValueError:
        logger.warning("Discarding corrupt cache entry %s", key)
        return None
    logger.debug("Generation cache hit %s", key)
    return questions


def store_questions(kind: str, params: dict[str, Any], questions: Questions) -> None:
    if not settings.GENERATION_CACHE_ENABLED:
        return
    key = cache_key(kind, params)
    try:
        _get_redis().setex(key, settings.GENERATION_CACHE_TTL_SECONDS, json.dumps(questions))
    except redis.RedisError as e:
        logger.warning("Generation cache write failed: %s", e)
