"""Tests for the response translator (buffered and streaming paths)."""

from __future__ import annotations

import json
import logging
from typing import Optional

import pytest

from chat_adapter.core.exceptions import StreamTransportError
from chat_adapter.core.translator import (
    StreamStats,
    build_chat_response,
    build_streaming_response,
    encode_header_value,
    extract_text,
    extract_usage,
    stream_text,
    streaming_headers,
)
from chat_adapter.testing import build_document, build_usage, encode_stream_event, split_chunks


class ListStream:
    """Upstream stand-in yielding fixed reads, optionally failing after some."""

    def __init__(self, chunks: list[bytes], fail_after: Optional[int] = None) -> None:
        self.chunks = chunks
        self.fail_after = fail_after
        self.reads = 0
        self.closed = False
        self.close_calls = 0

    async def _iterate(self):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise ConnectionResetError("peer reset")
            self.reads += 1
            yield chunk
        if self.fail_after is not None and self.fail_after >= len(self.chunks):
            raise ConnectionResetError("peer reset")

    def aiter_bytes(self):
        return self._iterate()

    async def aclose(self) -> None:
        self.close_calls += 1
        self.closed = True


def _events_to_chunks(*events) -> list[bytes]:
    return [encode_stream_event(event) for event in events]


async def _collect(upstream, **kwargs) -> list[bytes]:
    return [fragment async for fragment in stream_text(upstream, **kwargs)]


# =============================================================================
# Extraction
# =============================================================================


class TestExtractText:
    def test_returns_first_part_of_first_candidate(self):
        document = {
            "candidates": [
                {"content": {"parts": [{"text": "first"}, {"text": "second"}]}},
                {"content": {"parts": [{"text": "other candidate"}]}},
            ]
        }
        assert extract_text(document) == "first"

    @pytest.mark.parametrize(
        "document",
        [
            {},
            {"candidates": []},
            {"candidates": None},
            {"candidates": ["not a dict"]},
            {"candidates": [{}]},
            {"candidates": [{"content": {}}]},
            {"candidates": [{"content": {"parts": []}}]},
            {"candidates": [{"content": {"parts": [{}]}}]},
            {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
            {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
        ],
    )
    def test_returns_none_when_absent(self, document):
        """Missing fields at any level are a normal case, not an error."""
        assert extract_text(document) is None


class TestExtractUsage:
    def test_maps_provider_counters(self):
        usage = extract_usage({"usageMetadata": build_usage(3, 5)})
        assert usage is not None
        assert usage.model_dump() == {
            "prompt_tokens": 3,
            "completion_tokens": 5,
            "total_tokens": 8,
        }

    def test_absent_metadata_yields_none(self):
        assert extract_usage({"candidates": []}) is None

    def test_reported_zero_is_kept(self):
        usage = extract_usage(
            {"usageMetadata": {"promptTokenCount": 0, "candidatesTokenCount": 0, "totalTokenCount": 0}}
        )
        assert usage is not None
        assert usage.total_tokens == 0

    def test_missing_counters_default_to_zero(self):
        usage = extract_usage({"usageMetadata": {"promptTokenCount": 4}})
        assert usage is not None
        assert (usage.prompt_tokens, usage.completion_tokens, usage.total_tokens) == (4, 0, 0)

    def test_invalid_counter_values_become_zero(self):
        usage = extract_usage(
            {"usageMetadata": {"promptTokenCount": "7", "candidatesTokenCount": -1, "totalTokenCount": True}}
        )
        assert usage is not None
        assert (usage.prompt_tokens, usage.completion_tokens, usage.total_tokens) == (0, 0, 0)


# =============================================================================
# Buffered path
# =============================================================================


class TestBuildChatResponse:
    def test_full_document(self):
        document = build_document("hello", usage=build_usage(1, 1))
        response = build_chat_response(document, "conv_1")
        assert response.model_dump(exclude_none=True) == {
            "success": True,
            "conversation_id": "conv_1",
            "message": "hello",
            "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
        }

    def test_no_candidates_gives_empty_message(self):
        response = build_chat_response({}, "conv_2")
        assert response.success is True
        assert response.message == ""

    def test_usage_absent_not_null(self):
        """Serialized output omits usage entirely when the provider sent none."""
        response = build_chat_response(build_document("hi"), "conv_3")
        assert "usage" not in response.model_dump(exclude_none=True)


# =============================================================================
# Streaming path
# =============================================================================


class TestStreamText:
    @pytest.mark.asyncio
    async def test_forwards_fragments_in_order(self):
        upstream = ListStream(
            _events_to_chunks(build_document("Hel"), build_document("lo, "), build_document("world"))
        )
        fragments = await _collect(upstream)
        assert fragments == [b"Hel", b"lo, ", b"world"]
        assert upstream.closed is True

    @pytest.mark.asyncio
    async def test_events_split_across_arbitrary_reads(self):
        """Read boundaries inside lines and characters do not change output."""
        data = b"".join(
            _events_to_chunks(build_document("你好"), build_document("，世界"), build_document("!"))
        )
        for sizes in ([1] * len(data), [7, 3, 50], [len(data) - 1]):
            upstream = ListStream(split_chunks(data, sizes))
            fragments = await _collect(upstream)
            assert b"".join(fragments).decode("utf-8") == "你好，世界!"

    @pytest.mark.asyncio
    async def test_malformed_event_is_skipped(self, caplog):
        """One corrupt line neither aborts the stream nor drops its neighbours."""
        upstream = ListStream(
            _events_to_chunks(
                build_document("before "),
                'data: {"candidates": [ broken',
                build_document("after"),
            )
        )
        stats = StreamStats()
        with caplog.at_level(logging.WARNING, logger="chat-adapter"):
            fragments = await _collect(upstream, stats=stats)

        assert fragments == [b"before ", b"after"]
        assert stats.decode_errors == 1
        assert any("malformed stream event" in record.message for record in caplog.records)

    @pytest.mark.asyncio
    async def test_non_data_lines_contribute_nothing(self):
        upstream = ListStream(
            _events_to_chunks(": ping", "event: message", "", build_document("only"), "id: 3")
        )
        assert await _collect(upstream) == [b"only"]

    @pytest.mark.asyncio
    async def test_events_without_text_are_skipped(self):
        upstream = ListStream(
            _events_to_chunks(
                {"candidates": []},
                build_document(None, usage=build_usage(2, 0)),
                build_document("text"),
                {"usageMetadata": build_usage(2, 1)},
            )
        )
        stats = StreamStats()
        assert await _collect(upstream, stats=stats) == [b"text"]
        assert stats.events == 4
        assert stats.fragments == 1
        assert stats.usage == build_usage(2, 1)

    @pytest.mark.asyncio
    async def test_provider_error_event_is_logged_and_skipped(self, caplog):
        error_event = {"error": {"code": 500, "message": "internal", "status": "INTERNAL"}}
        upstream = ListStream(_events_to_chunks(build_document("a"), error_event, build_document("b")))
        stats = StreamStats()
        with caplog.at_level(logging.WARNING, logger="chat-adapter"):
            fragments = await _collect(upstream, stats=stats)
        assert fragments == [b"a", b"b"]
        assert len(stats.provider_errors) == 1

    @pytest.mark.asyncio
    async def test_final_line_without_newline_is_processed(self):
        last = f"data: {json.dumps(build_document('tail'))}".encode("utf-8")
        upstream = ListStream(_events_to_chunks(build_document("head ")) + [last])
        assert await _collect(upstream) == [b"head ", b"tail"]

    @pytest.mark.asyncio
    async def test_upstream_failure_raises_after_delivered_fragments(self):
        """A mid-stream disconnect ends the stream in an error state."""
        upstream = ListStream(
            _events_to_chunks(build_document("partial"), build_document("never")),
            fail_after=1,
        )
        received = []
        with pytest.raises(StreamTransportError, match="peer reset"):
            async for fragment in stream_text(upstream):
                received.append(fragment)

        assert received == [b"partial"]
        assert upstream.closed is True

    @pytest.mark.asyncio
    async def test_disconnect_checker_stops_reads(self):
        upstream = ListStream(_events_to_chunks(*(build_document(str(i)) for i in range(5))))
        checks = 0

        async def disconnected() -> bool:
            nonlocal checks
            checks += 1
            return checks > 2

        fragments = await _collect(upstream, disconnect_checker=disconnected)
        assert fragments == [b"0", b"1"]
        assert upstream.reads == 2
        assert upstream.closed is True

    @pytest.mark.asyncio
    async def test_closing_generator_releases_upstream(self):
        """Once the consumer stops pulling, no further reads are attempted."""
        upstream = ListStream(_events_to_chunks(*(build_document(str(i)) for i in range(5))))
        generator = stream_text(upstream)
        assert await generator.__anext__() == b"0"
        await generator.aclose()

        assert upstream.closed is True
        assert upstream.reads == 1

    @pytest.mark.asyncio
    async def test_empty_stream_completes_cleanly(self):
        upstream = ListStream([])
        assert await _collect(upstream) == []
        assert upstream.close_calls == 1


class TestBuildStreamingResponse:
    def test_headers_fixed_before_body(self):
        response = build_streaming_response(ListStream([]), "conv_abc")
        assert response.status_code == 200
        assert response.headers["content-type"] == "text/plain; charset=utf-8"
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["connection"] == "keep-alive"
        assert response.headers["x-conversation-id"] == "conv_abc"

    def test_precomputed_headers_are_used(self):
        headers = streaming_headers("会话-1")
        response = build_streaming_response(ListStream([]), "会话-1", headers=headers)
        assert response.headers["x-conversation-id"] == "%E4%BC%9A%E8%AF%9D-1"


class TestEncodeHeaderValue:
    @pytest.mark.parametrize("value", ["conv_1718000000000_k3j9x0a2b", "my conv/42?x=1", "100%"])
    def test_printable_ascii_unchanged(self, value):
        assert encode_header_value(value) == value

    def test_non_ascii_percent_encoded(self):
        assert encode_header_value("会话-1") == "%E4%BC%9A%E8%AF%9D-1"
        assert encode_header_value("café") == "caf%C3%A9"

    def test_control_characters_encoded(self):
        assert encode_header_value("a\r\nb") == "a%0D%0Ab"

    def test_streaming_headers_encode_id(self):
        headers = streaming_headers("会话")
        assert headers["X-Conversation-ID"].isascii()
