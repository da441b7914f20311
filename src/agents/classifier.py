import json
import logging
import re

from pydantic import ValidationError

from config import CLASSIFIER_TEMPERATURE
from models.tutor import (
    HARMFUL,
    PLACEMENT_TOPIC,
    ClassificationResult,
    ClassifierVerdict,
)
from services.llm import generate

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """You are a classification agent for an AI Tutor focused on campus placement preparation.

Your ONLY job is to classify the user's query into one of three categories:
1. "placement_topic": the query relates to placement preparation, technical interviews, coding,
   computer science, aptitude, or any of the topics below.
2. "irrelevant": the query is off-topic (recipes, weather, personal questions, entertainment).
3. "harmful": the query contains harmful, offensive, or inappropriate content.

AVAILABLE PLACEMENT TOPICS:
{topics}

RULES:
- If the query relates to ANY of the topics above or their subtopics, classify as "placement_topic".
- If the query asks to add a new topic to the knowledge base, classify as "placement_topic".
- If the query asks for general tech/CS knowledge useful for placements, classify as "placement_topic".
- Be generous: ambiguous or borderline queries with any reasonable placement connection are "placement_topic".
- ONLY reject if the query is clearly irrelevant or harmful.

Respond with ONLY a JSON object (no markdown, no code fences):
{{"classification": "placement_topic" | "irrelevant" | "harmful", "reason": "brief reason", "detectedTopic": "canonical topic name or null"}}
"""

HARMFUL_PREFIX = "⚠️ This query was flagged as harmful"
IRRELEVANT_PREFIX = "🚫 This query is not related to placement preparation"

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")

_EMPTY_TOPICS = {"", "null", "none"}


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _FENCE_START.sub("", cleaned)
    cleaned = _FENCE_END.sub("", cleaned)
    return cleaned.strip()


def _parse_verdict(response: str) -> ClassifierVerdict:
    data = json.loads(_strip_fences(response))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return ClassifierVerdict.model_validate(data)


def _rejection_reason(verdict: ClassifierVerdict) -> str:
    reason = verdict.reason or "no reason given"
    if verdict.classification == HARMFUL:
        return f"{HARMFUL_PREFIX}: {reason}"
    return f"{IRRELEVANT_PREFIX}: {reason}"


def _accept(query: str, detected_topic: str | None = None) -> ClassificationResult:
    topic = (detected_topic or "").strip()
    if topic.lower() in _EMPTY_TOPICS:
        topic = query
    return ClassificationResult(
        classification=PLACEMENT_TOPIC,
        rejected=False,
        topic=topic,
    )


def run_classifier(query: str, catalog_context: str) -> ClassificationResult:
    system_instruction = SYSTEM_INSTRUCTION.format(topics=catalog_context)

    # Fail open: an unclassifiable query is treated as a placement topic
    try:
        response = generate(
            query,
            system_instruction=system_instruction,
            temperature=CLASSIFIER_TEMPERATURE,
        )
    except Exception as e:
        logger.warning("Classification call failed for %r, accepting: %s", query, e)
        return _accept(query)

    try:
        verdict = _parse_verdict(response)
    except (ValidationError, ValueError) as e:
        logger.warning("Unparseable classification for %r, accepting: %s", query, e)
        return _accept(query)

    logger.info("Classified %r as %s (%s)", query, verdict.classification, verdict.reason)

    if verdict.classification != PLACEMENT_TOPIC:
        return ClassificationResult(
            classification=verdict.classification,
            rejected=True,
            rejection_reason=_rejection_reason(verdict),
        )

    return _accept(query, verdict.detected_topic)
