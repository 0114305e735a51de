"""Main FastAPI application for the chat adapter."""

import logging
from typing import Any, Mapping, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import (
    CHAT_OPENAPI_EXTRA,
    CHAT_RESPONSES,
    INTERNAL_ERROR_MESSAGE,
    adapter_error_response,
    error_response,
    llm_chat,
)
from .config_loader import load_config
from .core import AdapterError
from .core.translator import CONVERSATION_ID_HEADER
from .logging import setup_logging
from .settings import AdapterSettings

logger = logging.getLogger("chat-adapter")

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]
CORS_MAX_AGE = 86400
ANY_ORIGIN_REGEX = ".*"


async def health() -> dict[str, str]:
    return {"status": "ok"}


async def _handle_adapter_error(request: Request, exc: AdapterError):
    logger.error(f"Unhandled adapter error on {request.url.path}: {exc.message}")
    return adapter_error_response(exc)


async def _handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Global error handler caught: {exc}")
    return error_response(INTERNAL_ERROR_MESSAGE, 500)


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    *,
    settings: Optional[AdapterSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Parsed configuration dict. Loaded from CHAT_ADAPTER_CONFIG
            (or the default config file) when neither this nor ``settings``
            is given.
        settings: Ready-made settings; takes precedence over ``config``.
        transport: Optional httpx transport used for provider calls, for
            in-process upstreams.

    Returns:
        The configured FastAPI application instance.
    """
    if settings is None:
        if config is None:
            config = load_config(missing_ok=True)
        settings = AdapterSettings.from_config(config)

    setup_logging(settings.log_level)

    app = FastAPI(
        title="LLM Chat Adapter",
        version="1.0.0",
        description="Forwards chat messages to a Gemini model with streaming or buffered responses.",
    )
    app.state.settings = settings
    app.state.provider_transport = transport

    # "*" echoes the request Origin with Vary: Origin.
    origins = list(settings.cors_origins)
    wildcard = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if wildcard else origins,
        allow_origin_regex=ANY_ORIGIN_REGEX if wildcard else None,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        expose_headers=[CONVERSATION_ID_HEADER],
        max_age=CORS_MAX_AGE,
    )
    app.add_exception_handler(AdapterError, _handle_adapter_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    app.post(
        "/llm/chat",
        tags=["LLM"],
        summary="Chat with the Gemini model",
        description="Streams plain text when stream=true, otherwise returns one JSON object.",
        operation_id="gemini-chat",
        responses=CHAT_RESPONSES,
        openapi_extra=CHAT_OPENAPI_EXTRA,
    )(llm_chat)
    app.get("/health", tags=["System"])(health)

    logger.info(
        "Chat adapter created: model=%s, stream_model=%s, base_url=%s",
        settings.provider.model,
        settings.provider.stream_model,
        settings.provider.base_url,
    )
    return app


__all__ = ["create_app"]
