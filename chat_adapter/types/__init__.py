"""Type definitions for the adapter."""

from .chat import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    MAX_TOKENS_LIMIT,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    Usage,
)
from .gemini import (
    Candidate,
    GeminiContent,
    GeminiError,
    GeminiErrorBody,
    GeminiPart,
    GeminiRequest,
    GenerateContentResponse,
    GenerationConfig,
    SafetySetting,
    UsageMetadata,
)

__all__ = [
    "Candidate",
    "ChatRequest",
    "ChatResponse",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "ErrorResponse",
    "GeminiContent",
    "GeminiError",
    "GeminiErrorBody",
    "GeminiPart",
    "GeminiRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "MAX_TOKENS_LIMIT",
    "SafetySetting",
    "Usage",
    "UsageMetadata",
]
