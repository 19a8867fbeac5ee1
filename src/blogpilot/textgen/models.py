"""Data models for text generation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class ChunkType(StrEnum):
    """Kinds of chunk yielded by the content stream."""

    HTML = "html"
    IMAGE_SUGGESTION = "image_suggestion"
    BLOG_LINKS = "blog_links"


@dataclass(frozen=True)
class StreamChunk:
    """One structured piece of streamed article content."""

    type: ChunkType
    content: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StreamChunk:
        """Build a chunk from a decoded stream line.

        Raises:
            ValueError: If the type is unknown or content is missing.
        """
        return cls(type=ChunkType(data["type"]), content=str(data.get("content", "")))


@dataclass
class TrendingTopic:
    """A trending subject and why it is trending."""

    topic: str
    reason: str = ""


@dataclass
class OutlineSection:
    """One section of a blog outline.

    Attributes:
        id: Unique section identifier.
        heading: Proposed H2 heading.
        key_points: Markdown-style list of points to cover.
    """

    id: str
    heading: str
    key_points: str

    def to_prompt_dict(self) -> dict[str, str]:
        """Shape used when the outline is embedded in a prompt."""
        return {"id": self.id, "heading": self.heading, "keyPoints": self.key_points}


@dataclass
class FaqItem:
    """A question and answer pair."""

    question: str
    answer: str


@dataclass
class SeoMetadata:
    """SEO metadata generated for an article."""

    meta_titles: list[str] = field(default_factory=list)
    meta_descriptions: list[str] = field(default_factory=list)
    faq: list[FaqItem] = field(default_factory=list)
    key_takeaways: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SeoMetadata:
        return cls(
            meta_titles=[str(t) for t in data.get("metaTitles", [])],
            meta_descriptions=[str(d) for d in data.get("metaDescriptions", [])],
            faq=[
                FaqItem(question=str(item["question"]), answer=str(item["answer"]))
                for item in data.get("faq", [])
            ],
            key_takeaways=[str(k) for k in data.get("keyTakeaways", [])],
        )


@dataclass
class CustomerPersona:
    """Audience persona passed through to every writing prompt."""

    name: str
    age: int | None = None
    occupation: str = ""
    location: str = ""
    skincare_goals: list[str] = field(default_factory=list)
    pain_points: list[str] = field(default_factory=list)
    motivations: list[str] = field(default_factory=list)
    personality: str = ""
    bio: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CustomerPersona:
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})
