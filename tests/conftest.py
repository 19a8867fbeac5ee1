"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from typing import Any

import pytest

from blogpilot.shopify.models import Article, Blog
from blogpilot.textgen.models import ChunkType, StreamChunk


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


class ScriptedTextGenerator:
    """TextGenerator double that replays scripted answers.

    JSON answers are consumed in call order; every call is recorded.
    """

    def __init__(
        self,
        text: str = "A Title",
        json_responses: list[Any] | None = None,
        chunks: list[StreamChunk] | None = None,
    ) -> None:
        self.text = text
        self.json_responses = list(json_responses or [])
        self.chunks = list(chunks or [])
        self.calls: list[tuple[str, str]] = []

    async def generate(self, prompt: str) -> str:
        self.calls.append(("generate", prompt))
        return self.text

    async def generate_json(self, prompt: str, schema: dict[str, Any]) -> Any:
        self.calls.append(("generate_json", prompt))
        return self.json_responses.pop(0)

    async def generate_stream(self, prompt: str):
        self.calls.append(("generate_stream", prompt))
        for chunk in self.chunks:
            yield chunk


class SequenceImageGenerator:
    """Image chain double returning scripted URLs in order, then the last one."""

    def __init__(self, urls: list[str]) -> None:
        self.urls = list(urls)
        self.calls: list[str] = []

    async def generate(
        self,
        prompt: str,
        aspect_ratio: str = "16:9",
        style: str = "Default",
        negative_prompt: str = "",
    ) -> str:
        self.calls.append(prompt)
        index = min(len(self.calls), len(self.urls)) - 1
        return self.urls[index]


class RecordingPublisher:
    """Publisher double that records created articles."""

    def __init__(self, article_id: int = 42, blogs: list[Blog] | None = None) -> None:
        self.article_id = article_id
        self.blogs = blogs if blogs is not None else [Blog(id=7, title="News")]
        self.articles: list[dict[str, Any]] = []

    async def list_blogs(self) -> list[Blog]:
        return list(self.blogs)

    async def create_article(
        self,
        blog_id: int,
        html: str,
        meta_title: str | None = None,
        meta_description: str | None = None,
    ) -> Article:
        self.articles.append(
            {
                "blog_id": blog_id,
                "html": html,
                "meta_title": meta_title,
                "meta_description": meta_description,
            }
        )
        return Article(id=self.article_id, blog_id=blog_id, title="published")


PLACEHOLDER_URL = "https://via.placeholder.com/768x432/E8E8E8/666666?text=x"

OUTLINE_RESPONSE = [
    {"id": "a", "heading": "Why monsoon skin changes", "keyPoints": "- humidity"},
    {"id": "b", "heading": "A lighter routine", "keyPoints": "- gel moisturizer"},
    {"id": "c", "heading": "Sun care in the rain", "keyPoints": "- SPF still matters"},
]

SEO_RESPONSE = {
    "metaTitles": ["Monsoon Skincare Guide"],
    "metaDescriptions": ["Keep skin balanced all monsoon."],
    "faq": [{"question": "Do I need SPF?", "answer": "Yes."}],
    "keyTakeaways": ["Go lighter"],
}


@pytest.fixture
def monsoon_generator() -> ScriptedTextGenerator:
    """Text generator scripted for a single Monsoon Skincare job."""
    return ScriptedTextGenerator(
        text='"Glow Through the Monsoon"',
        json_responses=[
            {"trends": [{"topic": "Monsoon Skincare", "reason": "Rainy season"}]},
            OUTLINE_RESPONSE,
            SEO_RESPONSE,
        ],
        chunks=[
            StreamChunk(ChunkType.HTML, "<h1>Glow Through the Monsoon</h1><p>Humidity is here.</p>"),
            StreamChunk(ChunkType.IMAGE_SUGGESTION, "woman applying gel moisturizer by a rainy window"),
        ],
    )


@pytest.fixture
def flaky_images() -> SequenceImageGenerator:
    """Image chain that returns placeholders twice, then a real image."""
    return SequenceImageGenerator(
        [PLACEHOLDER_URL, PLACEHOLDER_URL, "https://picsum.photos/seed/1/768/432"]
    )


@pytest.fixture
def publisher() -> RecordingPublisher:
    """Publisher that returns article id 42."""
    return RecordingPublisher(article_id=42)


@pytest.fixture
def no_sleep():
    """Awaitable sleep that records delays instead of waiting."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep


@pytest.fixture
def scripted_generator() -> type[ScriptedTextGenerator]:
    """The ScriptedTextGenerator class, for tests that script their own answers."""
    return ScriptedTextGenerator


@pytest.fixture
def sequence_images() -> type[SequenceImageGenerator]:
    """The SequenceImageGenerator class."""
    return SequenceImageGenerator


@pytest.fixture
def recording_publisher() -> type[RecordingPublisher]:
    """The RecordingPublisher class."""
    return RecordingPublisher
