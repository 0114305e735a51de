"""SSE (Server-Sent Events) line decoding and event parsing."""

import codecs
import json
from typing import Any, Mapping, Optional

from .exceptions import EventDecodeError

DATA_PREFIX = "data: "


class SSELineDecoder:
    """Incrementally split an upstream byte stream into ``data:`` payloads.

    Reads may end in the middle of a multi-byte character or in the middle of
    a line, so both the UTF-8 decoder state and the unterminated tail of the
    last line are carried over to the next ``feed`` call. Only lines starting
    with ``"data: "`` are significant; blank lines, comments and other SSE
    fields are dropped.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        if not chunk:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain(final=False)

    def flush(self) -> list[str]:
        """Decode whatever is left once the upstream has ended."""
        self._buffer += self._decoder.decode(b"", final=True)
        return self._drain(final=True)

    def _drain(self, final: bool) -> list[str]:
        text = self._buffer.replace("\r\n", "\n")
        # A trailing "\r" may be the first half of a "\r\n" split across reads.
        if not final and text.endswith("\r"):
            text, carry = text[:-1], "\r"
        else:
            carry = ""
        text = text.replace("\r", "\n")

        lines = text.split("\n")
        if final:
            self._buffer = ""
        else:
            self._buffer = lines.pop() + carry

        payloads: list[str] = []
        for line in lines:
            if line.startswith(DATA_PREFIX):
                payloads.append(line[len(DATA_PREFIX):])
        return payloads


def parse_stream_event(payload: str) -> dict[str, Any]:
    """Parse one ``data:`` payload as a JSON object.

    Raises:
        EventDecodeError: If the payload is not a JSON object.
    """
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise EventDecodeError(f"invalid JSON in stream event: {exc}", payload) from exc
    if not isinstance(parsed, dict):
        raise EventDecodeError(
            f"stream event is {type(parsed).__name__}, expected object", payload
        )
    return parsed


def detect_stream_error(event: Mapping[str, Any]) -> Optional[str]:
    """
    Return a description if a parsed event is a provider error, None otherwise.

    Gemini reports in-stream failures as ``{"error": {"code", "message", "status"}}``.
    """
    error_obj = event.get("error")
    if not isinstance(error_obj, dict):
        return None
    error_msg = error_obj.get("message") or str(error_obj)
    status = error_obj.get("status") or error_obj.get("code") or "unknown"
    return f"SSE stream error: {error_msg} (status={status})"
