"""GeminiClient - Generative Language REST API over httpx."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from blogpilot.logging import sanitize_for_log, truncate_output
from blogpilot.textgen.exceptions import (
    MalformedResponseError,
    MissingAPIKeyError,
    TextGenerationError,
)
from blogpilot.textgen.models import StreamChunk

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash"

TEXT_CONFIG: dict[str, Any] = {"temperature": 0.7, "topP": 0.9, "topK": 40}
JSON_CONFIG: dict[str, Any] = {"temperature": 0.7, "topP": 0.9}
STREAM_CONFIG: dict[str, Any] = {"temperature": 0.6, "topP": 0.95, "topK": 40}


class TextGenerator(Protocol):
    """Interface for the text-generation collaborator."""

    async def generate(self, prompt: str) -> str:
        """Return a single text completion."""
        ...

    async def generate_json(self, prompt: str, schema: dict[str, Any]) -> Any:
        """Return a JSON value conforming to schema."""
        ...

    def generate_stream(self, prompt: str) -> AsyncIterator[StreamChunk]:
        """Return a lazy, finite sequence of structured chunks."""
        ...


def parse_chunk_line(line: str) -> StreamChunk | None:
    """Parse one newline-delimited stream line into a chunk.

    Blank lines and lines that are not a valid ``{type, content}`` object
    are skipped (None is returned).
    """
    line = line.strip()
    if not line:
        return None
    try:
        data = json.loads(line)
        return StreamChunk.from_dict(data)
    except (ValueError, KeyError, TypeError):
        logger.warning("Could not parse stream line as JSON, skipping: %s", line[:200])
        return None


class GeminiClient:
    """Async client for Gemini text generation.

    Supports plain completions, schema-constrained JSON completions, and a
    server-sent-event stream that is re-chunked into newline-delimited
    ``StreamChunk`` objects.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Generative Language API key.
            model: Model name, e.g. "gemini-2.0-flash".
            base_url: API root (overridable for testing/proxies).
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if not self.api_key:
            raise MissingAPIKeyError("API key not set. Configure gemini.api_key or GEMINI_API_KEY.")
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "x-goog-api-key": self.api_key,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _endpoint(self, method: str) -> str:
        return f"{self.base_url}/models/{self.model}:{method}"

    @staticmethod
    def _payload(prompt: str, generation_config: dict[str, Any]) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

    @staticmethod
    def _extract_text(data: dict[str, Any], allow_empty: bool = False) -> str:
        """Concatenate the text parts of the first candidate.

        Raises:
            MalformedResponseError: If there is no candidate text and
                allow_empty is False.
        """
        candidates = data.get("candidates") or []
        if not candidates:
            if allow_empty:
                return ""
            raise MalformedResponseError(f"No candidates in response: {str(data)[:300]}")
        parts = candidates[0].get("content", {}).get("parts", [])
        text = "".join(part.get("text", "") for part in parts)
        if not text and not allow_empty:
            reason = candidates[0].get("finishReason", "unknown")
            raise MalformedResponseError(f"Empty completion (finishReason={reason})")
        return text

    async def _post(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.client.post(self._endpoint(method), json=payload)
        except httpx.HTTPError as e:
            raise TextGenerationError(f"Request to {self.model} failed: {e}") from e

        if response.status_code != 200:
            raise TextGenerationError(
                f"Generation request failed: {response.status_code} - "
                f"{sanitize_for_log(response.text[:500])}"
            )
        data: dict[str, Any] = response.json()
        return data

    async def generate(self, prompt: str) -> str:
        """Return a single text completion for prompt."""
        logger.debug("generate (%d chars prompt)", len(prompt))
        data = await self._post("generateContent", self._payload(prompt, TEXT_CONFIG))
        return self._extract_text(data)

    async def generate_json(self, prompt: str, schema: dict[str, Any]) -> Any:
        """Return the parsed JSON completion constrained to schema.

        Raises:
            MalformedResponseError: If the completion is not valid JSON.
        """
        config = {
            **JSON_CONFIG,
            "responseMimeType": "application/json",
            "responseSchema": schema,
        }
        data = await self._post("generateContent", self._payload(prompt, config))
        text = self._extract_text(data)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Model returned invalid JSON: %s", truncate_output(text, 500))
            raise MalformedResponseError(f"Model returned invalid JSON: {e}") from e

    async def generate_stream(self, prompt: str) -> AsyncIterator[StreamChunk]:
        """Stream article content as structured chunks.

        Text from the SSE stream is buffered and split on newlines; each
        complete line is parsed as one chunk. Whatever remains in the buffer
        when the stream ends is parsed as a final chunk.
        """
        payload = self._payload(prompt, STREAM_CONFIG)
        buffer = ""
        try:
            async with self.client.stream(
                "POST",
                self._endpoint("streamGenerateContent"),
                params={"alt": "sse"},
                json=payload,
            ) as response:
                if response.status_code != 200:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise TextGenerationError(
                        f"Stream request failed: {response.status_code} - "
                        f"{sanitize_for_log(body[:500])}"
                    )

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    try:
                        event = json.loads(line[len("data:") :].strip())
                    except json.JSONDecodeError:
                        logger.warning("Skipping undecodable SSE event: %s", line[:200])
                        continue
                    buffer += self._extract_text(event, allow_empty=True)
                    while "\n" in buffer:
                        raw, buffer = buffer.split("\n", 1)
                        chunk = parse_chunk_line(raw)
                        if chunk is not None:
                            yield chunk
        except httpx.HTTPError as e:
            raise TextGenerationError(f"Content stream failed: {e}") from e

        tail = parse_chunk_line(buffer)
        if tail is not None:
            yield tail
