"""Core module initialization."""

from .builder import build_provider_request
from .conversation import generate_conversation_id, resolve_conversation_id
from .exceptions import (
    AdapterError,
    ConfigurationError,
    EventDecodeError,
    ProviderCallError,
    StreamTransportError,
    ValidationError,
)
from .provider import GeminiClient, UpstreamStream, format_httpx_error
from .sse import SSELineDecoder, detect_stream_error, parse_stream_event
from .translator import (
    StreamStats,
    build_chat_response,
    build_streaming_response,
    extract_text,
    extract_usage,
    stream_text,
)
from .validation import parse_json_body, validate_chat_request

__all__ = [
    "AdapterError",
    "ConfigurationError",
    "EventDecodeError",
    "GeminiClient",
    "ProviderCallError",
    "SSELineDecoder",
    "StreamStats",
    "StreamTransportError",
    "UpstreamStream",
    "ValidationError",
    "build_chat_response",
    "build_provider_request",
    "build_streaming_response",
    "detect_stream_error",
    "extract_text",
    "extract_usage",
    "format_httpx_error",
    "generate_conversation_id",
    "parse_json_body",
    "parse_stream_event",
    "resolve_conversation_id",
    "stream_text",
    "validate_chat_request",
]
