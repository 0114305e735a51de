"""Testing utilities for in-process adapter simulations."""

from .fake_provider import (
    FakeByteStream,
    FakeProvider,
    ProviderResponse,
    RecordedCall,
    build_document,
    build_stream_events,
    build_usage,
    encode_stream_event,
    split_chunks,
)

__all__ = [
    "FakeByteStream",
    "FakeProvider",
    "ProviderResponse",
    "RecordedCall",
    "build_document",
    "build_stream_events",
    "build_usage",
    "encode_stream_event",
    "split_chunks",
]
