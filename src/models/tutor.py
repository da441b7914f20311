from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Classification = Literal["placement_topic", "irrelevant", "harmful"]

PLACEMENT_TOPIC: Classification = "placement_topic"
IRRELEVANT: Classification = "irrelevant"
HARMFUL: Classification = "harmful"

MAX_KEY_CONCEPTS = 4


class _CamelModel(BaseModel):
    """Base model that reads and writes the camelCase keys used on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClassifierVerdict(_CamelModel):
    classification: Classification
    reason: str = ""
    detected_topic: str | None = None

    @field_validator("classification", mode="before")
    @classmethod
    def _normalize_classification(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("reason", mode="before")
    @classmethod
    def _stringify_reason(cls, value):
        return "" if value is None else str(value)

    @field_validator("detected_topic", mode="before")
    @classmethod
    def _stringify_topic(cls, value):
        return None if value is None else str(value)


class ClassificationResult(BaseModel):
    classification: Classification
    rejected: bool
    rejection_reason: str | None = None
    topic: str | None = None


class ImageMetadata(_CamelModel):
    title: str = ""
    subtitle: str = ""
    category: str = "general"
    key_concepts: list[str] = Field(default_factory=list)
    code_snippet: str = ""
    interview_tip: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value):
        if value is None:
            return "general"
        return str(value).strip().lower() or "general"

    @field_validator("key_concepts", mode="before")
    @classmethod
    def _limit_concepts(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [str(c) for c in value if c is not None][:MAX_KEY_CONCEPTS]
        return value

    @field_validator("code_snippet", mode="before")
    @classmethod
    def _join_code_lines(cls, value):
        if value is None:
            return ""
        if isinstance(value, list):
            return "\\n".join(str(line) for line in value)
        return value

    @field_validator("title", "subtitle", "interview_tip", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


def default_image_metadata(topic: str) -> ImageMetadata:
    return ImageMetadata(
        title=topic,
        subtitle="CSE Placement Preparation",
        category="general",
        key_concepts=["Concept 1", "Concept 2", "Concept 3", "Concept 4"],
        code_snippet="",
        interview_tip="Understand the fundamentals thoroughly.",
    )


class ValidMetadata(BaseModel):
    kind: Literal["valid"] = "valid"
    metadata: ImageMetadata

    def resolve(self, topic: str) -> ImageMetadata:
        return self.metadata


class ParseFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    error: str

    def resolve(self, topic: str) -> ImageMetadata:
        return default_image_metadata(topic)


MetadataParseResult = ValidMetadata | ParseFailure


class MediaResult(BaseModel):
    image_url: str | None = None
    audio_text: str | None = None
    image_failed: bool = False
    audio_failed: bool = False

    @property
    def media_failed(self) -> bool:
        return self.image_failed or self.audio_failed


class TutorResponse(_CamelModel):
    """Terminal snapshot of one pipeline run, as handed back to callers."""
    query: str
    duration: int
    topic: str | None = None
    rejected: bool = False
    rejection_reason: str | None = None
    classification: Classification | None = None
    markdown: str | None = None
    image_url: str | None = None
    audio_text: str | None = None
    media_failed: bool = False

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)
