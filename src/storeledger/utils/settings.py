"""Runtime settings read from the environment.

``PROTEAN_ENV`` selects the Protean config overlay; everything else the ledger
needs (codec key, credential secret and lifetime, lock timeout) is read here
once and cached.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

_DEV_CODEC_KEY = "storeledger-dev-codec-key-change-me"
_DEV_JWT_SECRET = "storeledger-dev-jwt-secret-change-me"


@dataclass(frozen=True)
class Settings:
    codec_key: str
    jwt_secret: str
    jwt_ttl_minutes: int = 60
    lock_timeout: float = 10.0
    environment: str = "development"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment. Cached; call ``get_settings.cache_clear()`` to reload."""
    environment = (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()
    codec_key = os.getenv("STORELEDGER_CODEC_KEY")
    jwt_secret = os.getenv("STORELEDGER_JWT_SECRET")

    if environment == "production" and (not codec_key or not jwt_secret):
        raise RuntimeError("STORELEDGER_CODEC_KEY and STORELEDGER_JWT_SECRET must be set in production")

    return Settings(
        codec_key=codec_key or _DEV_CODEC_KEY,
        jwt_secret=jwt_secret or _DEV_JWT_SECRET,
        jwt_ttl_minutes=_int_env("STORELEDGER_JWT_TTL_MINUTES", 60),
        lock_timeout=_float_env("LEDGER_LOCK_TIMEOUT", 10.0),
        environment=environment,
    )
