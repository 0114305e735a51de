"""Inbound chat request validation."""

import json
import logging
from typing import Any, Mapping

import pydantic

from ..types.chat import ChatRequest
from .exceptions import ValidationError

logger = logging.getLogger("chat-adapter")


def parse_json_body(body: bytes) -> Any:
    """Decode a raw request body, raising ValidationError for invalid JSON."""
    try:
        return json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error(f"Invalid JSON payload: {exc}")
        raise ValidationError("Invalid JSON payload", [str(exc)]) from exc


def _format_error(error: Mapping[str, Any]) -> str:
    field = ".".join(str(part) for part in error.get("loc", ())) or "body"
    message = str(error.get("msg", "invalid value"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}"


def validate_chat_request(payload: Any) -> ChatRequest:
    """Validate a decoded request body and fill in defaults.

    Args:
        payload: The decoded JSON body.

    Returns:
        A ChatRequest with temperature, max_tokens and stream defaulted.

    Raises:
        ValidationError: Listing every violated field constraint.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(
            "Request body must be a JSON object", ["body: must be a JSON object"]
        )
    try:
        return ChatRequest.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        errors = [_format_error(error) for error in exc.errors()]
        logger.warning(f"Rejected chat request: {'; '.join(errors)}")
        raise ValidationError("; ".join(errors), errors) from exc
