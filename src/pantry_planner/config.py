from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from .errors import ConfigurationError
from .logging import get_logger

log = get_logger("config")


DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_VISION_MODEL = "llama3.2-vision"
DEFAULT_OLLAMA_TEXT_MODEL = "qwen2.5:14b"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 4096


class Provider(str, Enum):
    OLLAMA = "ollama"
    ANTHROPIC = "anthropic"


def provider_from_string(value: Optional[str]) -> Optional[Provider]:
    """Map an ``LLM_PROVIDER`` override to a Provider, or None if unset/unknown."""
    if not value:
        return None
    candidate = value.strip().lower()
    for provider in Provider:
        if provider.value == candidate:
            return provider
    log.warning(f"Ignoring unrecognized LLM_PROVIDER={value!r}; expected one of ollama, anthropic")
    return None


@dataclass(frozen=True)
class ProviderConfig:
    provider: Provider
    ollama_base_url: str
    ollama_vision_model: str
    ollama_text_model: str
    anthropic_api_key: Optional[str]
    anthropic_model: str
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout_seconds: Optional[float] = None

    def describe(self) -> Dict[str, object]:
        """Summary safe for logs and CLI output (no credentials)."""
        if self.provider is Provider.OLLAMA:
            return {
                "provider": self.provider.value,
                "base_url": self.ollama_base_url,
                "vision_model": self.ollama_vision_model,
                "text_model": self.ollama_text_model,
            }
        return {
            "provider": self.provider.value,
            "model": self.anthropic_model,
            "api_key_set": bool(self.anthropic_api_key),
        }


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir."""
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def read_dotenv(dotenv_dir: Optional[str] = None) -> Dict[str, str]:
    """Read the nearest .env into a mapping; does not mutate the environment."""
    path = _find_upwards(dotenv_dir or os.getcwd(), ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir or os.getcwd())}")
        return {}
    values = {k: v.strip() for k, v in dotenv_values(path).items() if v is not None}
    log.debug(f"Loaded {len(values)} key(s) from .env at {path}")
    return values


def _lookup(name: str, environ: Mapping[str, str], dotenv: Mapping[str, str]) -> Optional[str]:
    v = environ.get(name)
    if v is None or not v.strip():
        v = dotenv.get(name)
    if v is None:
        return None
    v = v.strip()
    return v or None


def _parse_positive_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"LLM_TIMEOUT_SECONDS must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"LLM_TIMEOUT_SECONDS must be positive, got {value}")
    return value


def resolve_provider(
    override: Optional[str],
    ollama_base_url: Optional[str],
    anthropic_api_key: Optional[str],
) -> Provider:
    """Pick the backend: explicit override, then Ollama, then Anthropic."""
    forced = provider_from_string(override)
    if forced is not None:
        return forced
    if ollama_base_url:
        return Provider.OLLAMA
    if anthropic_api_key:
        return Provider.ANTHROPIC
    raise ConfigurationError(
        "No LLM provider configured. Set OLLAMA_BASE_URL or ANTHROPIC_API_KEY in the environment or .env"
    )


def load_provider_config(
    environ: Optional[Mapping[str, str]] = None,
    *,
    dotenv_dir: Optional[str] = None,
) -> ProviderConfig:
    """Build a ProviderConfig from ``environ`` (default os.environ) and .env."""
    env = os.environ if environ is None else environ
    dotenv = read_dotenv(dotenv_dir) if environ is None else {}

    base_url = _lookup("OLLAMA_BASE_URL", env, dotenv)
    api_key = _lookup("ANTHROPIC_API_KEY", env, dotenv)
    provider = resolve_provider(_lookup("LLM_PROVIDER", env, dotenv), base_url, api_key)

    config = ProviderConfig(
        provider=provider,
        ollama_base_url=(base_url or DEFAULT_OLLAMA_BASE_URL).rstrip("/"),
        ollama_vision_model=_lookup("OLLAMA_VISION_MODEL", env, dotenv) or DEFAULT_OLLAMA_VISION_MODEL,
        ollama_text_model=_lookup("OLLAMA_TEXT_MODEL", env, dotenv) or DEFAULT_OLLAMA_TEXT_MODEL,
        anthropic_api_key=api_key,
        anthropic_model=_lookup("ANTHROPIC_MODEL", env, dotenv) or DEFAULT_ANTHROPIC_MODEL,
        max_tokens=_parse_positive_int("LLM_MAX_TOKENS", _lookup("LLM_MAX_TOKENS", env, dotenv), DEFAULT_MAX_TOKENS),
        timeout_seconds=_parse_timeout(_lookup("LLM_TIMEOUT_SECONDS", env, dotenv)),
    )
    log.info(f"Resolved LLM provider: {config.describe()}")
    return config


_config_lock = threading.Lock()
_config: Optional[ProviderConfig] = None


def get_provider_config() -> ProviderConfig:
    """Return the process-wide ProviderConfig, resolving it on first use."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_provider_config()
    return _config


def reset_provider_config() -> None:
    global _config
    with _config_lock:
        _config = None
