"""Caller-facing request and response models for the chat endpoint."""

from typing import Optional

from pydantic import BaseModel, Field, StrictBool, StrictStr, field_validator

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024
MAX_TOKENS_LIMIT = 8192


class ChatRequest(BaseModel):
    """Inbound chat request with defaults applied."""

    message: StrictStr = Field(..., min_length=1)
    conversation_id: Optional[StrictStr] = None
    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0, le=2)
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, ge=1, le=MAX_TOKENS_LIMIT)
    stream: StrictBool = True

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be empty")
        return value

    @field_validator("temperature", "max_tokens", mode="before")
    @classmethod
    def _reject_non_numbers(cls, value):
        # JSON numbers only; pydantic would otherwise coerce "1" and true.
        if isinstance(value, (bool, str)):
            raise ValueError("must be a number")
        return value


class Usage(BaseModel):
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)


class ChatResponse(BaseModel):
    """Buffered chat response.

    ``usage`` is left as None when the provider reported no usage metadata;
    serialize with ``exclude_none=True`` so the field is absent rather than null.
    """

    success: bool
    conversation_id: str
    message: str
    usage: Optional[Usage] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
