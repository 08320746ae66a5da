"""Unit tests for the Redis-backed generation cache and AI rate limiter.

Redis itself is mocked; both helpers must let requests through when it is
unavailable.
"""

import json
from unittest.mock import MagicMock, patch

import redis
from starlette.requests import Request

from quiz_builder.config import settings
from quiz_builder.core.security import issue_token
from quiz_builder.services import generation_cache, rate_limiter


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw, "client": ("10.0.0.7", 1234)})


class TestGenerationCache:
    def test_key_ignores_param_order(self):
        a = generation_cache.cache_key("generate", {"source": "x", "count": 5})
        b = generation_cache.cache_key("generate", {"count": 5, "source": "x"})
        assert a == b
        assert a.startswith(f"quiz_gen:generate:{settings.GEMINI_MODEL}:")

    def test_key_depends_on_kind_and_model(self, monkeypatch):
        params = {"source": "x"}
        base = generation_cache.cache_key("generate", params)
        assert generation_cache.cache_key("convert", params) != base
        monkeypatch.setattr(settings, "GEMINI_MODEL", "another-model")
        assert generation_cache.cache_key("generate", params) != base

    def test_disabled_cache_never_touches_redis(self, monkeypatch):
        monkeypatch.setattr(settings, "GENERATION_CACHE_ENABLED", False)
        with patch.object(generation_cache, "_get_redis") as get_redis:
            assert generation_cache.cached_questions("generate", {"a": 1}) is None
            generation_cache.store_questions("generate", {"a": 1}, [{"text": "q"}])
        get_redis.assert_not_called()

    def test_hit_and_store(self, monkeypatch):
        monkeypatch.setattr(settings, "GENERATION_CACHE_ENABLED", True)
        monkeypatch.setattr(settings, "GENERATION_CACHE_TTL_SECONDS", 30)
        fake = MagicMock()
        fake.get.return_value = json.dumps([{"text": "q"}])
        with patch.object(generation_cache, "_get_redis", return_value=fake):
            assert generation_cache.cached_questions("generate", {"a": 1}) == [{"text": "q"}]
            generation_cache.store_questions("generate", {"a": 1}, [{"text": "q"}])
        key, ttl, payload = fake.setex.call_args[0]
        assert key == generation_cache.cache_key("generate", {"a": 1})
        assert ttl == 30
        assert json.loads(payload) == [{"text": "q"}]

    def test_corrupt_entry_is_a_miss(self, monkeypatch):
        monkeypatch.setattr(settings, "GENERATION_CACHE_ENABLED", True)
        fake = MagicMock()
        fake.get.return_value = "{not json"
        with patch.object(generation_cache, "_get_redis", return_value=fake):
            assert generation_cache.cached_questions("generate", {"a": 1}) is None

    def test_redis_down_is_a_miss(self, monkeypatch):
        monkeypatch.setattr(settings, "GENERATION_CACHE_ENABLED", True)
        fake = MagicMock()
        fake.get.side_effect = redis.ConnectionError("down")
        fake.setex.side_effect = redis.ConnectionError("down")
        with patch.object(generation_cache, "_get_redis", return_value=fake):
            assert generation_cache.cached_questions("generate", {"a": 1}) is None
            generation_cache.store_questions("generate", {"a": 1}, [])

    def test_generation_served_from_cache(self, monkeypatch):
        from quiz_builder.services import generation

        cached = [{"type": "short-answer", "text": "cached", "options": [], "answer": "x", "explanation": ""}]
        with patch.object(generation, "cached_questions", return_value=cached), \
                patch.object(generation, "get_llm_client") as get_client:
            assert generation.generate_from_source("topic") == cached
        get_client.assert_not_called()


class TestRateLimiter:
    def test_disabled_when_rpm_zero(self, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_AI_RPM", 0)
        with patch.object(rate_limiter, "_get_redis") as get_redis:
            assert rate_limiter.seconds_until_allowed("rl:ai:test") == 0
        get_redis.assert_not_called()

    def test_wait_comes_from_bucket_script(self, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_AI_RPM", 12)
        monkeypatch.setattr(settings, "RATE_LIMIT_AI_BURST", 3)
        fake = MagicMock()
        fake.eval.return_value = 5
        with patch.object(rate_limiter, "_get_redis", return_value=fake):
            assert rate_limiter.seconds_until_allowed("rl:ai:test") == 5
        args = fake.eval.call_args[0]
        assert args[1:5] == (1, "rl:ai:test", 3, 0.2)

    def test_allows_when_redis_down(self, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_AI_RPM", 10)
        fake = MagicMock()
        fake.eval.side_effect = redis.ConnectionError("down")
        with patch.object(rate_limiter, "_get_redis", return_value=fake):
            assert rate_limiter.seconds_until_allowed("rl:ai:test") == 0

    def test_bucket_per_user(self):
        import uuid

        user_id = uuid.uuid4()
        request = _request({"Authorization": f"Bearer {issue_token(user_id)}"})
        assert rate_limiter._client_key(request) == f"rl:ai:u:{user_id}"

    def test_bucket_per_ip_without_token(self):
        assert rate_limiter._client_key(_request()) == "rl:ai:ip:10.0.0.7"
        forwarded = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
        assert rate_limiter._client_key(forwarded) == "rl:ai:ip:203.0.113.9"

    def test_invalid_token_falls_back_to_ip(self):
        request = _request({"Authorization": "Bearer nonsense"})
        assert rate_limiter._client_key(request) == "rl:ai:ip:10.0.0.7"
