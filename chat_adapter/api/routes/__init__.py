"""API routes for the adapter."""

from .chat import (
    CHAT_OPENAPI_EXTRA,
    CHAT_RESPONSES,
    INTERNAL_ERROR_MESSAGE,
    adapter_error_response,
    error_response,
    handle_chat_request,
    llm_chat,
)

__all__ = [
    "CHAT_OPENAPI_EXTRA",
    "CHAT_RESPONSES",
    "INTERNAL_ERROR_MESSAGE",
    "adapter_error_response",
    "error_response",
    "handle_chat_request",
    "llm_chat",
]
