"""Prompt builders and response schemas for the writing steps."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from blogpilot.textgen.models import CustomerPersona, OutlineSection

SEO_CONTENT_LIMIT = 4000

TRENDS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "trends": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "topic": {"type": "STRING"},
                    "reason": {"type": "STRING"},
                },
                "required": ["topic", "reason"],
            },
        }
    },
    "required": ["trends"],
}

OUTLINE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "heading": {"type": "STRING"},
            "keyPoints": {"type": "STRING"},
        },
        "required": ["id", "heading", "keyPoints"],
    },
}

SEO_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "metaTitles": {"type": "ARRAY", "items": {"type": "STRING"}},
        "metaDescriptions": {"type": "ARRAY", "items": {"type": "STRING"}},
        "faq": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "answer": {"type": "STRING"},
                },
                "required": ["question", "answer"],
            },
        },
        "keyTakeaways": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["metaTitles", "metaDescriptions", "faq", "keyTakeaways"],
}


def _persona_block(persona: CustomerPersona | None, instruction: str) -> str:
    if persona is None:
        return ""
    return f"**Target Audience Persona:**\n{json.dumps(persona.to_dict(), indent=2)}\n{instruction}"


def _brand_voice_block(brand_voice: str | None) -> str:
    return f"**Brand Voice Profile:** {brand_voice}" if brand_voice else ""


def strip_tags(html: str) -> str:
    """Replace HTML tags with spaces."""
    return re.sub(r"<[^>]*>?", " ", html)


def trends_prompt(brand_name: str, audience: str) -> str:
    return "\n".join(
        [
            f"You are a market research analyst working for {brand_name}.",
            f"Identify the top 5 trending topics, ingredients, or concerns for {audience} "
            "right now.",
            'For each trend, give a concise reason why it is trending (e.g. "viral on TikTok", '
            '"seasonal demand").',
            "Return the response in the specified JSON format.",
        ]
    )


def title_prompt(
    topic: str,
    brand_name: str,
    content_template: str,
    author_persona: str,
    persona: CustomerPersona | None,
) -> str:
    parts = [
        f'You are a blog editor for {brand_name}. Your persona is: "{author_persona}".',
        f'Suggest one compelling, SEO-friendly title for a "{content_template}" about: "{topic}".',
        _persona_block(persona, "Write the title for this reader."),
        "Return only the title text on a single line, with no quotes or commentary.",
    ]
    return "\n".join(p for p in parts if p)


def outline_prompt(
    title: str,
    topic: str,
    brand_name: str,
    content_template: str,
    author_persona: str,
    brand_voice: str | None,
    persona: CustomerPersona | None,
) -> str:
    parts = [
        f"You are a strategic content planner for {brand_name}. "
        f'Your persona is: "{author_persona}".',
        "Your task is to create a detailed blog post outline.",
        "",
        f'**Blog Topic:** "{title}"',
        f'The article should target these SEO keywords: "{topic}".' if topic else "",
        _brand_voice_block(brand_voice),
        _persona_block(persona, "Tailor the outline to resonate with this specific person."),
        "",
        "**Instructions:**",
        f'1. Structure the post following the "{content_template}" template.',
        "2. Include an introduction, several main sections (H2 headings), and a conclusion.",
        "3. For each section list the key talking points as a markdown list.",
        '4. Return a JSON array of objects with "id", "heading" and "keyPoints".',
    ]
    return "\n".join(parts)


def content_prompt(
    title: str,
    topic: str,
    outline: list[OutlineSection],
    brand_name: str,
    author_persona: str,
    tone: str,
    audience: str,
    brand_voice: str | None,
    persona: CustomerPersona | None,
) -> str:
    outline_json = json.dumps([s.to_prompt_dict() for s in outline], indent=2)
    audience_block = _persona_block(persona, "Write directly to this person.") or (
        f"**Target Audience:** {audience}."
    )
    parts = [
        f"You are an expert copywriter for {brand_name}. Your persona is: "
        f'"{author_persona}". Write a detailed, SEO-friendly blog post from the outline.',
        "",
        f'**Blog Topic:** "{title}"',
        audience_block,
        f'**Tone of Voice:** "{tone}"',
        _brand_voice_block(brand_voice),
        f'Naturally incorporate the SEO keywords: "{topic}".' if topic else "",
        "**Article Outline to Follow:**",
        outline_json,
        "",
        "**Instructions:**",
        "1. Follow the outline section by section. The first section contains the H1 title.",
        "2. Identify 2-3 places for relevant images and write a detailed image prompt for each.",
        "3. Output a stream of JSON objects, one per line, never wrapped in an array:",
        '   {"type": "html", "content": "<h2>...</h2><p>...</p>"}',
        '   {"type": "image_suggestion", "content": "A detailed prompt for the image..."}',
        "   Use only <h1>, <h2>, <p>, <ul>, <li> and <a> tags inside html content.",
        "   Do not put image markers or comments inside html content.",
        "4. Aim for 500-700 words in total.",
    ]
    return "\n".join(p for p in parts if p is not None)


def seo_prompt(html: str, title: str, topic: str) -> str:
    plain = strip_tags(html)[:SEO_CONTENT_LIMIT]
    parts = [
        "Based on the following blog post content and title, generate SEO metadata, "
        "a Frequently Asked Questions section, and a Key Takeaways section.",
        f'**Blog Title:** "{title}"',
        f'The blog targets these SEO keywords: "{topic}". Align the meta title and '
        "description with them."
        if topic
        else "",
        "**Blog Content (Plain Text):**",
        "---",
        plain,
        "---",
        "1. metaTitles: 3 distinct options, each under 60 characters.",
        "2. metaDescriptions: 3 distinct options, each under 160 characters.",
        "3. faq: 3-4 questions with concise answers drawn from the content.",
        "4. keyTakeaways: 2-4 short strings.",
    ]
    return "\n".join(p for p in parts if p)
