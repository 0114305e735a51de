"""HTTP client for the Gemini REST API."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Optional

import httpx

from ..settings import ProviderSettings
from ..types.gemini import GeminiRequest, GenerateContentResponse
from .exceptions import ProviderCallError

logger = logging.getLogger("chat-adapter")


def format_httpx_error(exc: httpx.HTTPError, url: Optional[str] = None, timeout: Optional[float] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = exc.request
    except RuntimeError:
        request = None
    if request is not None:
        parts.append(f"request={request.method} {str(request.url).split('?', 1)[0]}")
    elif url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException) and timeout is not None:
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)


def describe_error_body(status_code: int, content: bytes) -> str:
    """Build an error description from a non-2xx provider body."""
    detail: Optional[str] = None
    try:
        payload = json.loads(content or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None
    if isinstance(payload, dict):
        error_obj = payload.get("error")
        if isinstance(error_obj, dict):
            detail = error_obj.get("message") or error_obj.get("status")
        elif isinstance(error_obj, str):
            detail = error_obj
    if not detail:
        detail = content.decode("utf-8", errors="replace").strip()[:200] or None
    if detail:
        return f"Provider returned status {status_code}: {detail}"
    return f"Provider returned status {status_code}"


class UpstreamStream:
    """An open streaming response from the provider.

    Owns the client it was sent with; ``aclose`` releases both and may be
    called more than once.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient, url: str) -> None:
        self.response = response
        self.url = url
        self._client = client
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self.response.aiter_bytes()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug(f"Closing stream for {self.url}")
        try:
            await self.response.aclose()
        finally:
            await self._client.aclose()


class GeminiClient:
    """Calls ``generateContent`` and ``streamGenerateContent`` over raw REST."""

    def __init__(
        self,
        settings: ProviderSettings,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._api_key = api_key
        self._transport = transport

    def build_url(self, stream: bool) -> str:
        if stream:
            return f"{self.settings.base_url}/models/{self.settings.stream_model}:streamGenerateContent?alt=sse"
        return f"{self.settings.base_url}/models/{self.settings.model}:generateContent"

    def build_headers(self, stream: bool) -> dict[str, str]:
        return {
            "content-type": "application/json",
            "accept": "text/event-stream" if stream else "application/json",
            "x-goog-api-key": self._api_key,
        }

    async def generate(self, body: GeminiRequest) -> GenerateContentResponse:
        """Send a buffered request and return the decoded response document.

        Raises:
            ProviderCallError: On transport failure, a non-2xx status, or a
                body that is not a JSON object.
        """
        url = self.build_url(stream=False)
        timeout = self.settings.timeout
        logger.debug(f"Initiating non-streaming request to {url}")
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.post(url, headers=self.build_headers(False), json=body)
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, url, timeout)
            logger.error(f"Provider request to {url} failed: {detail}")
            raise ProviderCallError(f"Provider request failed: {detail}") from exc

        logger.debug(f"Received response from {url}: status {resp.status_code}")
        if not resp.is_success:
            message = describe_error_body(resp.status_code, resp.content)
            logger.warning(message)
            raise ProviderCallError(message, status_code=resp.status_code)

        try:
            document: Any = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ProviderCallError(f"Provider returned invalid JSON: {exc}", status_code=502) from exc
        if not isinstance(document, dict):
            raise ProviderCallError("Provider returned a non-object JSON document", status_code=502)
        return document

    async def open_stream(self, body: GeminiRequest) -> UpstreamStream:
        """Send a streaming request and return once response headers arrive.

        Raises:
            ProviderCallError: On transport failure or a non-2xx status. The
                client is closed before raising.
        """
        url = self.build_url(stream=True)
        timeout = self.settings.timeout
        logger.debug(f"Stream timeout config - connect={timeout}s, read=None, write={timeout}s, pool={timeout}s")
        stream_timeout = httpx.Timeout(connect=timeout, read=None, write=timeout, pool=timeout)
        client = httpx.AsyncClient(timeout=stream_timeout, transport=self._transport)
        try:
            request = client.build_request(
                "POST", url, headers=self.build_headers(True), json=body
            )
            resp = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            detail = format_httpx_error(exc, url, timeout)
            logger.error(f"Failed to send streaming request to {url}: {detail}")
            raise ProviderCallError(f"Provider request failed: {detail}") from exc
        except BaseException:
            await client.aclose()
            raise

        upstream = UpstreamStream(resp, client, url)
        if not resp.is_success:
            try:
                data = await resp.aread()
            except httpx.HTTPError:
                data = b""
            finally:
                await upstream.aclose()
            message = describe_error_body(resp.status_code, data)
            logger.warning(f"Streaming request to {url} returned error status {resp.status_code}")
            raise ProviderCallError(message, status_code=resp.status_code)

        logger.info(f"Streaming request to {url} successful, status {resp.status_code}")
        return upstream
