"""
config.py — settings loaded from the environment / .env file.

Modules receive a Settings instance; only this file reads os.environ.
The DEFAULT_* constants are also the constructor defaults of the cache
and the upstream client.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_BASE = "https://api-vwcc5j4qda-uc.a.run.app/paddlePredict"
DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_CACHE_TTL_SECONDS = 600      # 10 minutes
DEFAULT_FALLBACK_TTL_SECONDS = 300   # fallback entries expire sooner


def _get(key: str, default: str = "") -> str:
    return os.getenv(key, default)


@dataclass(frozen=True)
class Settings:
    api_base: str                 # upstream base URL (…/forecast, …/current)
    timeout_seconds: float        # per upstream request, before falling back
    cache_ttl_seconds: float      # live API entries
    fallback_ttl_seconds: float   # synthesized entries
    log_level: str
    port: int
    debug: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_base=_get("PADDLECAST_API_BASE", DEFAULT_API_BASE),
            timeout_seconds=float(_get("PADDLECAST_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))),
            cache_ttl_seconds=float(
                _get("PADDLECAST_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS))
            ),
            fallback_ttl_seconds=float(
                _get("PADDLECAST_FALLBACK_TTL_SECONDS", str(DEFAULT_FALLBACK_TTL_SECONDS))
            ),
            log_level=_get("LOG_LEVEL", "INFO"),
            port=int(_get("PORT", "5000")),
            debug=_get("FLASK_DEBUG", "0") == "1",
        )
