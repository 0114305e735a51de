"""Typed settings built from the loaded configuration dict."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

logger = logging.getLogger("chat-adapter")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_STREAM_MODEL = "gemini-2.0-flash"
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_TIMEOUT = 60.0
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _get(cfg: Mapping[str, Any], *keys: str) -> Any:
    current: Any = cfg
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _parse_float(value: Any, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        logger.warning(f"Invalid numeric setting {value!r}; using {default}")
        return default


def _parse_int(value: Any, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer setting {value!r}; using {default}")
        return default


def _is_placeholder(value: str) -> bool:
    # Unset ${VAR} references survive env substitution verbatim.
    return value.startswith("$")


@dataclass(frozen=True)
class ProviderSettings:
    base_url: str = GEMINI_BASE_URL
    model: str = DEFAULT_MODEL
    stream_model: str = DEFAULT_STREAM_MODEL
    api_key: Optional[str] = None
    api_key_env: str = DEFAULT_API_KEY_ENV
    timeout: float = DEFAULT_TIMEOUT

    def resolve_api_key(self) -> Optional[str]:
        """Look up the provider credential.

        Called once per request and never cached: an explicit ``api_key``
        wins, otherwise the environment variable named by ``api_key_env``.
        """
        if self.api_key and not _is_placeholder(self.api_key):
            return self.api_key
        value = os.getenv(self.api_key_env) if self.api_key_env else None
        return value or None

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "ProviderSettings":
        provider = _get(cfg, "provider")
        if not isinstance(provider, Mapping):
            if provider is not None:
                logger.warning(f"Ignoring non-mapping provider section: {provider!r}")
            provider = {}
        api_key = provider.get("api_key")
        return cls(
            base_url=str(provider.get("base_url") or GEMINI_BASE_URL).rstrip("/"),
            model=str(provider.get("model") or DEFAULT_MODEL),
            stream_model=str(
                provider.get("stream_model") or provider.get("model") or DEFAULT_STREAM_MODEL
            ),
            api_key=str(api_key) if api_key else None,
            api_key_env=str(provider.get("api_key_env") or DEFAULT_API_KEY_ENV),
            timeout=_parse_float(provider.get("request_timeout"), DEFAULT_TIMEOUT),
        )


@dataclass(frozen=True)
class AdapterSettings:
    provider: ProviderSettings = field(default_factory=ProviderSettings)
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "AdapterSettings":
        """Build settings; CHAT_ADAPTER_HOST / CHAT_ADAPTER_PORT override the file."""
        origins = _get(cfg, "server", "cors_origins")
        if isinstance(origins, str):
            origins = [origins]
        if not origins:
            origins = ["*"]

        host = os.getenv("CHAT_ADAPTER_HOST") or _get(cfg, "server", "host") or DEFAULT_HOST
        port_raw = os.getenv("CHAT_ADAPTER_PORT") or _get(cfg, "server", "port")

        return cls(
            provider=ProviderSettings.from_config(cfg),
            cors_origins=tuple(str(origin) for origin in origins),
            log_level=str(_get(cfg, "logging", "level") or "INFO").upper(),
            host=str(host),
            port=_parse_int(port_raw, DEFAULT_PORT),
        )
