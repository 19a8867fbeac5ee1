"""BlogWriter - the text-generation steps of a blog job."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from blogpilot.textgen import prompts
from blogpilot.textgen.exceptions import MalformedResponseError
from blogpilot.textgen.models import OutlineSection, SeoMetadata, TrendingTopic

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from blogpilot.textgen.client import TextGenerator
    from blogpilot.textgen.models import CustomerPersona, StreamChunk

logger = logging.getLogger(__name__)


class BlogWriter:
    """Wraps a TextGenerator with one method per writing step.

    Each method is a plain request/response (or request/stream) call; no
    method retries.
    """

    def __init__(
        self,
        generator: TextGenerator,
        brand_name: str = "our store",
        audience: str = "online shoppers",
        content_template: str = "Standard Blog Post",
        author_persona: str = "Beauty Guru",
        tone: str = "Professional and Informative",
    ) -> None:
        self.generator = generator
        self.brand_name = brand_name
        self.audience = audience
        self.content_template = content_template
        self.author_persona = author_persona
        self.tone = tone

    async def trending_topics(self) -> list[TrendingTopic]:
        """Ask the model for currently trending topics."""
        data = await self.generator.generate_json(
            prompts.trends_prompt(self.brand_name, self.audience), prompts.TRENDS_SCHEMA
        )
        if not isinstance(data, dict):
            raise MalformedResponseError("Trending topics response is not an object")
        topics = [
            TrendingTopic(topic=str(item["topic"]), reason=str(item.get("reason", "")))
            for item in data.get("trends", [])
            if item.get("topic")
        ]
        logger.info("Model returned %d trending topics", len(topics))
        return topics

    async def title(self, topic: str, persona: CustomerPersona | None = None) -> str:
        """Suggest a blog title for topic."""
        text = await self.generator.generate(
            prompts.title_prompt(
                topic, self.brand_name, self.content_template, self.author_persona, persona
            )
        )
        lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
        if not lines:
            raise MalformedResponseError("Model returned an empty title")
        return lines[0].strip("\"'* ").strip()

    async def outline(
        self,
        title: str,
        topic: str,
        brand_voice: str | None = None,
        persona: CustomerPersona | None = None,
    ) -> list[OutlineSection]:
        """Build a structured outline.

        Model-supplied section ids are replaced with fresh UUIDs.
        """
        data = await self.generator.generate_json(
            prompts.outline_prompt(
                title,
                topic,
                self.brand_name,
                self.content_template,
                self.author_persona,
                brand_voice,
                persona,
            ),
            prompts.OUTLINE_SCHEMA,
        )
        if not isinstance(data, list):
            raise MalformedResponseError("Outline response is not an array")
        try:
            return [
                OutlineSection(
                    id=str(uuid.uuid4()),
                    heading=str(item["heading"]),
                    key_points=str(item["keyPoints"]),
                )
                for item in data
            ]
        except (KeyError, TypeError) as e:
            raise MalformedResponseError(f"Outline section missing field: {e}") from e

    def content_stream(
        self,
        title: str,
        topic: str,
        outline: list[OutlineSection],
        brand_voice: str | None = None,
        persona: CustomerPersona | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Stream the article body as html and image_suggestion chunks."""
        prompt = prompts.content_prompt(
            title,
            topic,
            outline,
            self.brand_name,
            self.author_persona,
            self.tone,
            self.audience,
            brand_voice,
            persona,
        )
        return self.generator.generate_stream(prompt)

    async def seo_metadata(self, html: str, title: str, topic: str) -> SeoMetadata:
        """Generate meta titles/descriptions, FAQ and key takeaways."""
        data = await self.generator.generate_json(
            prompts.seo_prompt(html, title, topic), prompts.SEO_SCHEMA
        )
        if not isinstance(data, dict):
            raise MalformedResponseError("SEO response is not an object")
        try:
            return SeoMetadata.from_dict(data)
        except (KeyError, TypeError) as e:
            raise MalformedResponseError(f"SEO response missing field: {e}") from e
