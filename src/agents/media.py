import base64
import json
import logging
from concurrent.futures import ThreadPoolExecutor

from pydantic import ValidationError

from agents.renderer import render_topic_svg
from config import (
    IMAGE_METADATA_MAX_TOKENS,
    MEDIA_TEMPERATURE,
    NARRATION_MAX_TOKENS,
    NARRATION_SOURCE_CHARS,
    WORDS_PER_MINUTE,
)
from models.tutor import (
    ImageMetadata,
    MediaResult,
    MetadataParseResult,
    ParseFailure,
    ValidMetadata,
)
from services.llm import generate

logger = logging.getLogger(__name__)

METADATA_PROMPT = """You are generating metadata for a CSE placement preparation infographic about: "{topic}".

Stay narrowly on "{topic}" itself, not the broader subject it belongs to.

Return a JSON object with these fields (no markdown, ONLY raw JSON):
{{
  "title": "Short title (max 5 words)",
  "subtitle": "One-line description (max 15 words)",
  "keyConcepts": ["concept1", "concept2", "concept3", "concept4"],
  "category": "one of: dsa, web, system-design, database, os, networking, oop, general",
  "codeSnippet": "A 5-8 line code example. You MUST use a literal backslash-n (\\\\n) between lines. Each line under 50 chars.",
  "interviewTip": "One short placement interview tip (max 20 words)"
}}"""

NARRATION_PROMPT = """Convert the following markdown content into a clean, natural-sounding script for text-to-speech narration.
Remove all markdown formatting, code blocks, and special characters.
Keep it conversational and clear. Limit it to {duration} minutes of speech (~{word_count} words).

Content:
{content}"""


def _extract_json(text: str) -> str | None:
    """Return the first balanced {...} span in ``text``, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i, c in enumerate(text[start:], start):
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return None


def parse_image_metadata(response: str) -> MetadataParseResult:
    candidate = _extract_json(response)
    if candidate is None:
        return ParseFailure(error="No complete JSON object in response")

    try:
        data = json.loads(candidate)
        return ValidMetadata(metadata=ImageMetadata.model_validate(data))
    except (json.JSONDecodeError, ValidationError) as e:
        return ParseFailure(error=str(e))


def to_data_uri(svg: str) -> str:
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def generate_image(topic: str) -> str:
    response = generate(
        METADATA_PROMPT.format(topic=topic),
        temperature=MEDIA_TEMPERATURE,
        max_output_tokens=IMAGE_METADATA_MAX_TOKENS,
    )

    parsed = parse_image_metadata(response)
    if isinstance(parsed, ParseFailure):
        logger.warning("Falling back to default image metadata for %r: %s", topic, parsed.error)

    svg = render_topic_svg(parsed.resolve(topic))
    logger.info("Rendered infographic for %r (%d bytes)", topic, len(svg))
    return to_data_uri(svg)


def generate_narration(markdown: str, duration: int) -> str | None:
    prompt = NARRATION_PROMPT.format(
        duration=duration,
        word_count=duration * WORDS_PER_MINUTE,
        content=markdown[:NARRATION_SOURCE_CHARS],
    )
    response = generate(
        prompt,
        temperature=MEDIA_TEMPERATURE,
        max_output_tokens=NARRATION_MAX_TOKENS,
    )
    return response.strip() or None


def _image_task(topic: str) -> tuple[str | None, bool]:
    try:
        return generate_image(topic), False
    except Exception as e:
        logger.error("Image generation failed for %r: %s", topic, e)
        return None, True


def _narration_task(markdown: str, duration: int) -> tuple[str | None, bool]:
    try:
        return generate_narration(markdown, duration), False
    except Exception as e:
        logger.error("Narration script generation failed: %s", e)
        return None, True


def run_media(topic: str, markdown: str, duration: int) -> MediaResult:
    logger.info("Generating media for %r", topic)

    # Both futures are joined before the pool exits; each task reports its own failure
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="media") as pool:
        image_future = pool.submit(_image_task, topic)
        narration_future = pool.submit(_narration_task, markdown, duration)
        image_url, image_failed = image_future.result()
        audio_text, audio_failed = narration_future.result()

    return MediaResult(
        image_url=image_url,
        audio_text=audio_text,
        image_failed=image_failed,
        audio_failed=audio_failed,
    )
