"""llm-chat-adapter

A small HTTP adapter that forwards chat messages to a Gemini model and
returns the answer as a live plain-text stream or as one JSON object.

This module provides:
- create_app: FastAPI application factory exposing POST /llm/chat
- Response translation for streamed and buffered provider payloads
- YAML + .env configuration loading

Example:
    >>> from chat_adapter import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="127.0.0.1", port=8000)
"""

from .config_loader import load_config
from .logging import setup_logging
from .main import create_app
from .settings import AdapterSettings, ProviderSettings

__version__ = "1.0.0"

__all__ = [
    "AdapterSettings",
    "ProviderSettings",
    "create_app",
    "load_config",
    "setup_logging",
]
