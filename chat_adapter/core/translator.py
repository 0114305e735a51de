"""Translate provider responses into the caller-facing chat contract.

Two paths share one extraction rule (first candidate, first text part):

- streaming: ``stream_text`` turns the provider's ``data:``-framed event
  stream into raw UTF-8 text fragments, forwarded one per event as they
  arrive; ``build_streaming_response`` wraps it with fixed headers.
- buffered: ``build_chat_response`` turns one provider document into a
  ``ChatResponse`` with normalized usage counters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional, Protocol
from urllib.parse import quote

from fastapi.responses import StreamingResponse

from ..types.chat import ChatResponse, Usage
from ..types.gemini import UsageMetadata
from .exceptions import EventDecodeError, StreamTransportError
from .sse import SSELineDecoder, detect_stream_error, parse_stream_event

logger = logging.getLogger("chat-adapter")

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
CONVERSATION_ID_HEADER = "X-Conversation-ID"
# Printable ASCII except "%" and space.
_HEADER_SAFE = "".join(chr(code) for code in range(0x21, 0x7F) if chr(code) != "%")


class ByteStream(Protocol):
    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


# =============================================================================
# Field extraction
# =============================================================================


def extract_text(document: Mapping[str, Any]) -> Optional[str]:
    """Return the first candidate's first text part, or None if absent."""
    candidates = document.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return None
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts:
        return None
    part = parts[0]
    if not isinstance(part, dict):
        return None
    text = part.get("text")
    return text if isinstance(text, str) else None


def _count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


def extract_usage(document: Mapping[str, Any]) -> Optional[Usage]:
    """Map ``usageMetadata`` to normalized counters.

    Returns None when the document carries no usage block at all, so callers
    can tell "reported zero" apart from "reported nothing".
    """
    metadata = document.get("usageMetadata")
    if not isinstance(metadata, dict):
        return None
    return Usage(
        prompt_tokens=_count(metadata.get("promptTokenCount")),
        completion_tokens=_count(metadata.get("candidatesTokenCount")),
        total_tokens=_count(metadata.get("totalTokenCount")),
    )


# =============================================================================
# Buffered path
# =============================================================================


def build_chat_response(document: Mapping[str, Any], conversation_id: str) -> ChatResponse:
    return ChatResponse(
        success=True,
        conversation_id=conversation_id,
        message=extract_text(document) or "",
        usage=extract_usage(document),
    )


# =============================================================================
# Streaming path
# =============================================================================


@dataclass
class StreamStats:
    """Per-stream counters, logged once the stream ends."""
    chunks: int = 0
    events: int = 0
    fragments: int = 0
    decode_errors: int = 0
    provider_errors: list[str] = field(default_factory=list)
    usage: Optional[UsageMetadata] = None


def _event_fragment(payload: str, stats: StreamStats) -> Optional[bytes]:
    try:
        event = parse_stream_event(payload)
    except EventDecodeError as exc:
        stats.decode_errors += 1
        logger.warning(f"Skipping malformed stream event: {exc.message}")
        return None

    stats.events += 1
    error = detect_stream_error(event)
    if error:
        stats.provider_errors.append(error)
        logger.warning(error)
    usage = event.get("usageMetadata")
    if isinstance(usage, dict):
        stats.usage = usage

    text = extract_text(event)
    if not text:
        return None
    stats.fragments += 1
    return text.encode("utf-8")


async def stream_text(
    upstream: ByteStream,
    disconnect_checker: Optional[Callable[[], Awaitable[bool]]] = None,
    stats: Optional[StreamStats] = None,
) -> AsyncIterator[bytes]:
    """Yield text fragments from a provider event stream, in arrival order.

    One upstream read per loop iteration; each read may produce zero or more
    fragments. Malformed events are skipped. A failure while reading from
    upstream is raised as StreamTransportError so the response is aborted
    rather than completed. The upstream is closed however the generator ends,
    and no read is attempted once ``disconnect_checker`` reports the caller
    gone or the generator is closed.
    """
    stats = stats if stats is not None else StreamStats()
    decoder = SSELineDecoder()
    chunks = upstream.aiter_bytes()
    try:
        while True:
            if disconnect_checker and await disconnect_checker():
                logger.info("Client disconnected; stopping upstream reads")
                return
            try:
                chunk = await chunks.__anext__()
            except StopAsyncIteration:
                break
            except Exception as exc:
                logger.error(f"Error during streaming from provider: {exc}")
                raise StreamTransportError(f"upstream stream failed: {exc}") from exc

            stats.chunks += 1
            for payload in decoder.feed(chunk):
                fragment = _event_fragment(payload, stats)
                if fragment:
                    yield fragment

        for payload in decoder.flush():
            fragment = _event_fragment(payload, stats)
            if fragment:
                yield fragment
    finally:
        await upstream.aclose()
        logger.info(
            "Stream finished: chunks=%d events=%d fragments=%d decode_errors=%d usage=%s",
            stats.chunks,
            stats.events,
            stats.fragments,
            stats.decode_errors,
            stats.usage,
        )


def encode_header_value(value: str) -> str:
    """Return ``value`` unchanged if it is printable ASCII, else percent-encode it.

    Header values are sent as Latin-1, so ids with other characters (or
    control characters) are carried as UTF-8 percent-escapes.
    """
    if all(" " <= ch <= "~" for ch in value):
        return value
    return quote(value, safe=_HEADER_SAFE)


def streaming_headers(conversation_id: str) -> dict[str, str]:
    return {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        CONVERSATION_ID_HEADER: encode_header_value(conversation_id),
    }


def build_streaming_response(
    upstream: ByteStream,
    conversation_id: str,
    disconnect_checker: Optional[Callable[[], Awaitable[bool]]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> StreamingResponse:
    """Wrap ``stream_text`` in a response whose headers are fixed up front.

    ``headers`` may be precomputed with ``streaming_headers`` so that header
    problems surface before the provider is called.
    """
    return StreamingResponse(
        stream_text(upstream, disconnect_checker=disconnect_checker),
        status_code=200,
        headers=dict(headers) if headers is not None else streaming_headers(conversation_id),
        media_type=STREAM_MEDIA_TYPE,
    )
