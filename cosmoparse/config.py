from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from cosmoparse.errors import ConfigurationError


load_dotenv()

API_KEY_ENV = "COSMO_AI_KEY"
API_KEY_PREFIX = "ai_"
DEFAULT_MODEL = "gpt-4o"
DEFAULT_BASE_URL = "https://apis.ai.cosmoconsult.com"
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str
    base_url: str
    timeout: float


def resolve_api_key(api_key: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Pick the explicit key if given, otherwise the COSMO_AI_KEY environment value.

    Raises ConfigurationError when no key is found or the key does not carry
    the "ai_" prefix. Nothing else is consulted, so the result depends only on
    the two arguments.
    """
    env = os.environ if environ is None else environ
    key = api_key if api_key is not None else env.get(API_KEY_ENV)

    if not key:
        raise ConfigurationError(f"Missing {API_KEY_ENV}")
    if not key.startswith(API_KEY_PREFIX):
        raise ConfigurationError(f"API key must start with '{API_KEY_PREFIX}'")
    return key


def load_settings(
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    env = os.environ if environ is None else environ
    raw_timeout = env.get("COSMO_AI_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(raw_timeout)
    except ValueError as exc:
        raise ConfigurationError(f"COSMO_AI_TIMEOUT is not a number: {raw_timeout!r}") from exc

    return Settings(
        api_key=resolve_api_key(api_key, env),
        model=model or env.get("COSMO_AI_MODEL", DEFAULT_MODEL),
        base_url=env.get("COSMO_AI_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        timeout=timeout,
    )
