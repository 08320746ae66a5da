"""HTTP client for the Gemini ``generateContent`` API (singleton)."""

import logging
from typing import Any

import httpx

from quiz_builder.config import settings
from quiz_builder.core.errors import GenerationFailed

logger = logging.getLogger(__name__)


class GeminiClient:
    """Thin wrapper around the Gemini REST API."""

    def __init__(
        self,
        api_key: str = settings.GEMINI_API_KEY,
        model: str = settings.GEMINI_MODEL,
        base_url: str = settings.GEMINI_API_URL,
        timeout: float = settings.LLM_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._http = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def generate(self, prompt: str) -> str:
        """Send *prompt* and return the first candidate's text ('' when empty)."""
        if not self._api_key:
            raise GenerationFailed("GEMINI_API_KEY not set")
        try:
            r = self._http.post(
                f"/models/{self.model}:generateContent",
                json={"contents": [{"parts": [{"text": prompt}]}]},
                headers={"X-goog-api-key": self._api_key},
            )
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Gemini API error %s: %s", e.response.status_code, e.response.text[:500])
            raise GenerationFailed("LLM request failed", raw=_diagnostic(e.response.text)) from e
        except httpx.HTTPError as e:
            logger.error("Gemini API unreachable: %s", e)
            raise GenerationFailed("LLM request failed", raw=_diagnostic(str(e))) from e
        try:
            payload = r.json()
        except ValueError as e:
            logger.error("Gemini API returned a non-JSON body: %s", r.text[:500])
            raise GenerationFailed(
                "LLM returned an invalid response", raw=_diagnostic(r.text)
            ) from e
        return extract_text(payload)


def _diagnostic(text: str) -> str | None:
    """Upstream text for the error envelope, only when raw output is exposed."""
    return text[:2000] if settings.EXPOSE_LLM_RAW_OUTPUT else None


def extract_text(payload: dict[str, Any]) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of a response body."""
    try:
        return payload["candidates"][0]["content"]["parts"][0]["text"] or ""
    except (KeyError, IndexError, TypeError):
        return ""


# ── singleton accessor ────────────────────────────────────────────────────────

_instance: GeminiClient | None = None


def get_llm_client() -> GeminiClient:
    global _instance
    if _instance is None:
        _instance = GeminiClient()
        logger.info("LLM client initialised → %s", _instance.model)
    return _instance
