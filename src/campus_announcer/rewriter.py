"""Rewrite announcement text into natural, spoken phrasing with Gemini.

``AnnouncementRewriter.rewrite`` never raises. Failures come back as a
human-readable ``Error: ...`` string so the text field always ends up
holding something the user can read.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from campus_announcer.config import DEFAULT_MODEL, DEFAULT_TIMEOUT
from campus_announcer.errors import RewriteError

logger = logging.getLogger(__name__)

API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

MISSING_KEY_MESSAGE = "Error: API key is not configured."
FAILURE_PREFIX = "Error: Could not humanize text."

_MAX_ERROR_CHARS = 180

PROMPT_TEMPLATE = """You are an expert communicator specializing in public announcements.
Rewrite the following text to sound more natural, human, and engaging for a campus audience.
Maintain a friendly yet professional tone. The core message must remain the same.
Avoid overly casual language or slang. The goal is clarity and a pleasant, non-robotic delivery.
Return ONLY the rewritten text, without any additional comments, preamble, or markdown formatting.

Original text: "{text}\""""


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=text)


def _short(message: str) -> str:
    compact = " ".join(message.split())
    if len(compact) <= _MAX_ERROR_CHARS:
        return compact
    return f"{compact[: _MAX_ERROR_CHARS - 3]}..."


def _provider_message(response: requests.Response | None) -> str:
    """Pull ``error.message`` out of a Gemini error body, if there is one."""
    if response is None:
        return ""
    try:
        payload = response.json()
    except ValueError:
        return response.text or ""
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        return str(payload["error"].get("message", ""))
    return ""


def _extract_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise RewriteError("Gemini response did not contain any text.") from exc
    if not text.strip():
        raise RewriteError("Gemini response did not contain any text.")
    return text.strip()


class AnnouncementRewriter:
    """Calls the Gemini ``generateContent`` endpoint to humanize announcements."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = API_BASE_URL,
    ) -> None:
        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.model = model
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def rewrite(self, text: str) -> str:
        """Return *text* rewritten for a public announcement, or an error sentinel."""
        if not self.configured:
            return MISSING_KEY_MESSAGE
        if not text.strip():
            return ""
        try:
            return self._generate(build_prompt(text))
        except RewriteError as exc:
            logger.error("Error humanizing text with AI: %s", exc)
            return f"{FAILURE_PREFIX} {exc}"

    def _generate(self, prompt: str) -> str:
        endpoint = f"{self.base_url}/models/{self.model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            response = requests.post(
                endpoint, headers=headers, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            detail = _provider_message(exc.response) or str(exc)
            raise RewriteError(
                f"Gemini request failed ({status}): {_short(detail)}", status_code=status
            ) from exc
        except requests.Timeout as exc:
            raise RewriteError("Gemini request timed out.") from exc
        except requests.RequestException as exc:
            raise RewriteError(f"Gemini request transport error: {_short(str(exc))}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise RewriteError("Gemini response was not valid JSON.") from exc
        logger.debug("Gemini rewrite via %s succeeded", self.model)
        return _extract_text(body)
