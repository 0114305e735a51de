"""Chat endpoint forwarding messages to the Gemini provider."""

import logging
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from ...core import (
    AdapterError,
    ConfigurationError,
    GeminiClient,
    build_chat_response,
    build_provider_request,
    build_streaming_response,
    parse_json_body,
    resolve_conversation_id,
    validate_chat_request,
)
from ...core.translator import streaming_headers
from ...settings import AdapterSettings
from ...types.chat import ChatRequest, ChatResponse, ErrorResponse

logger = logging.getLogger("chat-adapter")

INTERNAL_ERROR_MESSAGE = "Internal error while processing the request"


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    body = ErrorResponse(error=message or INTERNAL_ERROR_MESSAGE)
    return JSONResponse(body.model_dump(), status_code=status_code)


def adapter_error_response(exc: AdapterError) -> JSONResponse:
    return error_response(exc.message, exc.status_code)


async def handle_chat_request(request: Request) -> Response:
    """Handle a chat request end to end.

    Validation and the credential check both run before any provider call.
    Provider failures are caught here, before translation starts, and
    returned as ``{"success": false, "error": ...}`` with the provider's
    status mirrored when one was received.

    Args:
        request: The FastAPI request object.

    Returns:
        A StreamingResponse of plain text, or a JSONResponse.
    """
    logger.info(f"Handling {request.method} request to {request.url.path}")
    settings: AdapterSettings = request.app.state.settings
    transport = getattr(request.app.state, "provider_transport", None)

    try:
        body = await request.body()
        chat_request = validate_chat_request(parse_json_body(body))

        api_key = settings.provider.resolve_api_key()
        if not api_key:
            raise ConfigurationError("Gemini API key is not configured")

        provider_request = build_provider_request(chat_request)
        conversation_id = resolve_conversation_id(chat_request.conversation_id)
        client = GeminiClient(settings.provider, api_key, transport=transport)
        logger.info(
            f"Processing chat request {conversation_id}, stream={chat_request.stream}"
        )

        if chat_request.stream:
            headers = streaming_headers(conversation_id)
            upstream = await client.open_stream(provider_request)
            try:
                return build_streaming_response(
                    upstream,
                    conversation_id,
                    disconnect_checker=request.is_disconnected,
                    headers=headers,
                )
            except BaseException:
                await upstream.aclose()
                raise

        document = await client.generate(provider_request)
        chat_response = build_chat_response(document, conversation_id)
        logger.info(f"Chat request {conversation_id} completed successfully")
        return JSONResponse(chat_response.model_dump(exclude_none=True))
    except AdapterError as exc:
        logger.error(f"Chat request failed ({exc.status_code}): {exc.message}")
        return adapter_error_response(exc)
    except ClientDisconnect:
        logger.info("Client disconnected before the request body was read")
        return Response(status_code=499)
    except Exception as exc:
        logger.exception(f"Unexpected error processing chat request: {exc}")
        return error_response(INTERNAL_ERROR_MESSAGE, 500)


async def llm_chat(request: Request) -> Response:
    """Chat with the configured Gemini model.

    POST /llm/chat
    """
    logger.info("Received chat request")
    return await handle_chat_request(request)


CHAT_OPENAPI_EXTRA: dict[str, Any] = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": ChatRequest.model_json_schema()}},
    },
}

CHAT_RESPONSES: dict[int, dict[str, Any]] = {
    200: {
        "description": "Plain-text stream (stream=true) or a JSON body (stream=false)",
        "model": ChatResponse,
        "content": {"text/plain": {"schema": {"type": "string"}}},
    },
    400: {"description": "Invalid request parameters", "model": ErrorResponse},
    500: {"description": "Internal or provider error", "model": ErrorResponse},
}
