import math
from typing import Annotated, TypedDict

from config import DEFAULT_DURATION, MAX_DURATION, MIN_DURATION
from models.tutor import Classification


def keep_set(current, update):
    """Reducer that ignores ``None`` so a filled-in field is never cleared."""
    return current if update is None else update


class PipelineState(TypedDict, total=False):
    # User inputs
    query: str
    duration: int
    # Classifier
    classification: Annotated[Classification | None, keep_set]
    rejected: Annotated[bool | None, keep_set]
    rejection_reason: Annotated[str | None, keep_set]
    topic: Annotated[str | None, keep_set]
    # Content
    markdown: Annotated[str | None, keep_set]
    # Media
    image_url: Annotated[str | None, keep_set]
    audio_text: Annotated[str | None, keep_set]
    media_failed: Annotated[bool | None, keep_set]


def clamp_duration(value) -> int:
    if value is None or isinstance(value, bool):
        return DEFAULT_DURATION
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_DURATION
    if math.isnan(number):
        return DEFAULT_DURATION
    if math.isinf(number):
        return MAX_DURATION if number > 0 else MIN_DURATION
    return min(MAX_DURATION, max(MIN_DURATION, int(number)))


def create_initial_state(query: str, duration=None) -> PipelineState:
    return {
        "query": query,
        "duration": clamp_duration(duration),
        "rejected": False,
        "media_failed": False,
    }
