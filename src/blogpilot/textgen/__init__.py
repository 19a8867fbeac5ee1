"""Text generation - LLM client and the writing steps built on it."""

from blogpilot.textgen.client import GeminiClient, TextGenerator, parse_chunk_line
from blogpilot.textgen.exceptions import (
    MalformedResponseError,
    MissingAPIKeyError,
    TextGenerationError,
)
from blogpilot.textgen.models import (
    ChunkType,
    CustomerPersona,
    FaqItem,
    OutlineSection,
    SeoMetadata,
    StreamChunk,
    TrendingTopic,
)
from blogpilot.textgen.writer import BlogWriter

__all__ = [
    "BlogWriter",
    "ChunkType",
    "CustomerPersona",
    "FaqItem",
    "GeminiClient",
    "MalformedResponseError",
    "MissingAPIKeyError",
    "OutlineSection",
    "SeoMetadata",
    "StreamChunk",
    "TextGenerationError",
    "TextGenerator",
    "TrendingTopic",
    "parse_chunk_line",
]
