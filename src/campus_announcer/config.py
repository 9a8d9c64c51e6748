"""Environment-driven settings for the announcer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_STORE = Path.home() / ".campus_announcer" / "storage.json"
DEFAULT_TIMEOUT = 30.0


@dataclass
class AnnouncerConfig:
    """Runtime settings resolved from the environment."""

    api_key: str | None = None
    model: str = DEFAULT_MODEL
    store_path: Path = DEFAULT_STORE
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> AnnouncerConfig:
        """Build a config from *env* (defaults to ``os.environ``).

        ``GEMINI_API_KEY`` wins over the generic ``API_KEY``. Blank values
        count as unset.
        """
        env = os.environ if env is None else env
        api_key = (env.get("GEMINI_API_KEY") or env.get("API_KEY") or "").strip()
        store = (env.get("ANNOUNCER_STORE") or "").strip()
        timeout = (env.get("ANNOUNCER_TIMEOUT") or "").strip()
        try:
            timeout_value = float(timeout) if timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(f"ANNOUNCER_TIMEOUT must be a number, got {timeout!r}") from None
        return cls(
            api_key=api_key or None,
            model=(env.get("ANNOUNCER_MODEL") or "").strip() or DEFAULT_MODEL,
            store_path=Path(store).expanduser() if store else DEFAULT_STORE,
            timeout=timeout_value,
        )
