"""Build provider request bodies from validated chat requests."""

from ..types.chat import ChatRequest
from ..types.gemini import GeminiRequest


def build_provider_request(chat_request: ChatRequest) -> GeminiRequest:
    """Map a ChatRequest to a single-turn Gemini request.

    The adapter keeps no history, so the body always holds exactly one user
    turn with the inbound message as its only text part.
    """
    return {
        "contents": [
            {
                "role": "user",
                "parts": [{"text": chat_request.message}],
            }
        ],
        "generationConfig": {
            "temperature": chat_request.temperature,
            "maxOutputTokens": chat_request.max_tokens,
        },
    }
