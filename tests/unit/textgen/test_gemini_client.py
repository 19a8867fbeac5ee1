"""Unit tests for GeminiClient."""

import json

import httpx
import pytest

from blogpilot.textgen import (
    ChunkType,
    GeminiClient,
    MalformedResponseError,
    MissingAPIKeyError,
    TextGenerationError,
    parse_chunk_line,
)


def completion(text: str) -> dict:
    """Build a generateContent response body."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


def sse_body(*texts: str) -> bytes:
    """Build a streamGenerateContent SSE body, one event per text."""
    events = [f"data: {json.dumps(completion(t))}\n\n" for t in texts]
    return "".join(events).encode()


def make_client(handler) -> GeminiClient:
    return GeminiClient(api_key="test-key", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestParseChunkLine:
    """Tests for parse_chunk_line."""

    def test_parses_html_chunk(self) -> None:
        """A valid line becomes a StreamChunk."""
        chunk = parse_chunk_line('{"type": "html", "content": "<p>Hi</p>"}')

        assert chunk is not None
        assert chunk.type == ChunkType.HTML
        assert chunk.content == "<p>Hi</p>"

    def test_blank_line_skipped(self) -> None:
        """Blank lines yield nothing."""
        assert parse_chunk_line("   ") is None

    def test_invalid_json_skipped(self) -> None:
        """Lines that are not JSON yield nothing."""
        assert parse_chunk_line("not json {") is None

    def test_unknown_type_skipped(self) -> None:
        """Unknown chunk types yield nothing."""
        assert parse_chunk_line('{"type": "video", "content": "x"}') is None


@pytest.mark.unit
class TestGenerate:
    """Tests for GeminiClient.generate and generate_json."""

    @pytest.mark.asyncio
    async def test_generate_returns_text(self) -> None:
        """generate returns the candidate text and sends the API key header."""
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion("Hello"))

        client = make_client(handler)
        try:
            result = await client.generate("Say hello")
        finally:
            await client.aclose()

        assert result == "Hello"
        assert seen["url"].endswith("/models/gemini-2.0-flash:generateContent")
        assert seen["key"] == "test-key"
        assert seen["body"]["contents"][0]["parts"][0]["text"] == "Say hello"

    @pytest.mark.asyncio
    async def test_generate_json_sends_schema_and_parses(self) -> None:
        """generate_json requests JSON output and parses it."""
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["config"] = json.loads(request.content)["generationConfig"]
            return httpx.Response(200, json=completion('{"trends": []}'))

        client = make_client(handler)
        try:
            result = await client.generate_json("trends", {"type": "OBJECT"})
        finally:
            await client.aclose()

        assert result == {"trends": []}
        assert seen["config"]["responseMimeType"] == "application/json"
        assert seen["config"]["responseSchema"] == {"type": "OBJECT"}

    @pytest.mark.asyncio
    async def test_generate_json_invalid_raises(self) -> None:
        """Invalid JSON raises MalformedResponseError."""
        client = make_client(lambda request: httpx.Response(200, json=completion("not json")))
        try:
            with pytest.raises(MalformedResponseError):
                await client.generate_json("x", {})
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_non_200_raises(self) -> None:
        """A non-200 response raises TextGenerationError."""
        client = make_client(lambda request: httpx.Response(500, text="boom"))
        try:
            with pytest.raises(TextGenerationError, match="500"):
                await client.generate("x")
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_no_candidates_raises(self) -> None:
        """A response without candidates is malformed."""
        client = make_client(lambda request: httpx.Response(200, json={"candidates": []}))
        try:
            with pytest.raises(MalformedResponseError):
                await client.generate("x")
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self) -> None:
        """Transport failures are raised as TextGenerationError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        client = make_client(handler)
        try:
            with pytest.raises(TextGenerationError, match="unreachable"):
                await client.generate("x")
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self) -> None:
        """An empty API key fails on first use."""
        client = GeminiClient(api_key="")

        with pytest.raises(MissingAPIKeyError):
            await client.generate("x")


@pytest.mark.unit
class TestGenerateStream:
    """Tests for GeminiClient.generate_stream."""

    @pytest.mark.asyncio
    async def test_rechunks_lines_across_events(self) -> None:
        """Lines split across SSE events are reassembled before parsing."""
        body = sse_body(
            '{"type": "html", "content": "<h1>T</h1>"}\n{"type": "image_sugg',
            'estion", "content": "a jar of cream"}\n',
            '{"type": "html", "content": "<p>end</p>"}',
        )
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

        client = make_client(handler)
        try:
            chunks = [c async for c in client.generate_stream("write")]
        finally:
            await client.aclose()

        assert "streamGenerateContent" in seen["url"]
        assert "alt=sse" in seen["url"]
        assert [(c.type, c.content) for c in chunks] == [
            (ChunkType.HTML, "<h1>T</h1>"),
            (ChunkType.IMAGE_SUGGESTION, "a jar of cream"),
            (ChunkType.HTML, "<p>end</p>"),
        ]

    @pytest.mark.asyncio
    async def test_unparseable_lines_skipped(self) -> None:
        """Bad lines are skipped without ending the stream."""
        body = sse_body('garbage line\n{"type": "html", "content": "ok"}\n')
        client = make_client(lambda request: httpx.Response(200, content=body))
        try:
            chunks = [c async for c in client.generate_stream("write")]
        finally:
            await client.aclose()

        assert [c.content for c in chunks] == ["ok"]

    @pytest.mark.asyncio
    async def test_stream_error_status_raises(self) -> None:
        """A failed stream request raises TextGenerationError."""
        client = make_client(lambda request: httpx.Response(429, text="quota"))
        try:
            with pytest.raises(TextGenerationError, match="429"):
                _ = [c async for c in client.generate_stream("write")]
        finally:
            await client.aclose()
