"""Conversation identifier helpers."""

import secrets
import string
import time
from typing import Optional

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def generate_conversation_id() -> str:
    """Return a new opaque id like ``conv_1718000000000_k3j9x0a2b``.

    Millisecond timestamp plus a random base-36 suffix; practically
    collision-free but not a storage key.
    """
    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"conv_{millis}_{suffix}"


def resolve_conversation_id(conversation_id: Optional[str]) -> str:
    """Echo a caller-supplied id, or synthesize one."""
    if conversation_id:
        return conversation_id
    return generate_conversation_id()
