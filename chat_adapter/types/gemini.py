"""Types for the Gemini generative-language REST API.

The provider's JSON is loosely typed: any field may be missing from a given
document, so every record here is declared with ``total=False`` and readers
are expected to extract fields one level at a time.
"""

from typing_extensions import TypedDict


# =============================================================================
# Request Types
# =============================================================================


class GeminiPart(TypedDict, total=False):
    """One fragment of content within a turn.

    Attributes:
        text: Text of the fragment.
    """
    text: str


class GeminiContent(TypedDict, total=False):
    """A single conversation turn.

    Attributes:
        role: Author of the turn, "user" or "model". Optional on requests.
        parts: Ordered content fragments.
    """
    role: str
    parts: list[GeminiPart]


class GenerationConfig(TypedDict, total=False):
    """Sampling controls sent with a request.

    Attributes:
        temperature: Sampling temperature in [0, 2].
        topK: Top-k sampling cutoff.
        topP: Nucleus sampling cutoff in [0, 1].
        maxOutputTokens: Upper bound on generated tokens.
        stopSequences: Sequences that end generation.
    """
    temperature: float
    topK: int
    topP: float
    maxOutputTokens: int
    stopSequences: list[str]


class SafetySetting(TypedDict):
    category: str
    threshold: str


class GeminiRequest(TypedDict, total=False):
    """Body of a generateContent / streamGenerateContent call."""
    contents: list[GeminiContent]
    generationConfig: GenerationConfig
    safetySettings: list[SafetySetting]


# =============================================================================
# Response Types
# =============================================================================


class Candidate(TypedDict, total=False):
    """One alternative completion.

    Attributes:
        content: Generated turn, role "model".
        finishReason: Why generation stopped (e.g. "STOP", "MAX_TOKENS").
        index: Position of this candidate in the response.
    """
    content: GeminiContent
    finishReason: str
    index: int


class UsageMetadata(TypedDict, total=False):
    """Token accounting reported by the provider."""
    promptTokenCount: int
    candidatesTokenCount: int
    totalTokenCount: int


class GeminiError(TypedDict, total=False):
    code: int
    message: str
    status: str


class GenerateContentResponse(TypedDict, total=False):
    """A buffered response document, or one event of a streamed response.

    Streamed events share this shape: each ``data:`` line of the stream holds
    one document carrying the next text delta, and usually the final event
    carries ``usageMetadata``.
    """
    candidates: list[Candidate]
    usageMetadata: UsageMetadata
    modelVersion: str
    error: GeminiError


class GeminiErrorBody(TypedDict, total=False):
    """Body returned with non-2xx statuses."""
    error: GeminiError
