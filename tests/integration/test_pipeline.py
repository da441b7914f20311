"""End-to-end tests for the compiled tutor graph with a scripted LLM."""

import json
import time

import pytest
from graph import workflow
from graph.errors import InvalidQueryError, PipelineError, PipelineTimeoutError
from graph.workflow import get_app, next_stage, run_pipeline
from langgraph.graph import END

from conftest import CLASSIFY, METADATA, NARRATION, TUTOR


def _verdict(classification, reason="because", detected_topic=None) -> str:
    return json.dumps({
        "classification": classification,
        "reason": reason,
        "detectedTopic": detected_topic,
    })


@pytest.mark.integration
def test_accepted_query_runs_every_stage(fake_llm):
    result = run_pipeline("Explain REST APIs in MERN Stack", 3)

    assert result.classification == "placement_topic"
    assert result.rejected is False
    assert result.topic == "REST API Design"
    assert result.markdown.startswith("## REST APIs")
    assert result.image_url.startswith("data:image/svg+xml;base64,")
    assert result.audio_text
    assert result.media_failed is False
    assert fake_llm.kinds()[:2] == [CLASSIFY, TUTOR]
    assert sorted(fake_llm.kinds()[2:]) == [METADATA, NARRATION]
    assert "450 words" in fake_llm.call_for(TUTOR)["system_instruction"]


@pytest.mark.integration
def test_irrelevant_query_short_circuits(fake_llm):
    fake_llm.set(CLASSIFY, _verdict("irrelevant", reason="cooking"))

    result = run_pipeline("Give me a pizza recipe")

    assert result.classification == "irrelevant"
    assert result.rejected is True
    assert "not related to placement preparation" in result.rejection_reason
    assert result.markdown is None
    assert result.image_url is None
    assert result.audio_text is None
    assert result.topic is None
    assert fake_llm.kinds() == [CLASSIFY]


@pytest.mark.integration
def test_harmful_query_is_flagged(fake_llm):
    fake_llm.set(CLASSIFY, _verdict("harmful", reason="violent content"))

    result = run_pipeline("how to hurt someone", 4)

    assert result.rejected is True
    assert "flagged as harmful" in result.rejection_reason
    assert result.markdown is None


@pytest.mark.integration
def test_classifier_timeout_fails_open(fake_llm):
    fake_llm.set(CLASSIFY, TimeoutError("deadline exceeded"))

    result = run_pipeline("Explain paging in operating systems", 2)

    assert result.rejected is False
    assert result.classification == "placement_topic"
    assert result.topic == "Explain paging in operating systems"
    assert result.markdown is not None


@pytest.mark.integration
def test_truncated_metadata_still_renders(fake_llm):
    fake_llm.set(METADATA, '{"title": "REST", "keyConcepts": ["GET", "PO')

    result = run_pipeline("Explain REST APIs in MERN Stack", 3)

    assert result.media_failed is False
    assert result.image_url.startswith("data:image/svg+xml;base64,")


@pytest.mark.integration
def test_degraded_content_still_gets_media(fake_llm):
    fake_llm.set(TUTOR, ConnectionError("upstream reset"))

    result = run_pipeline("Explain deadlocks", 3)

    assert result.markdown.startswith("## ⚠️ Content Generation Error")
    assert result.image_url is not None
    assert result.media_failed is False


@pytest.mark.integration
def test_blank_walkthrough_is_replaced_and_media_runs(fake_llm):
    fake_llm.set(TUTOR, "   \n ")

    result = run_pipeline("Explain deadlocks", 3)

    assert result.markdown.startswith("## ⚠️ Content Generation Error")
    assert result.image_url.startswith("data:image/svg+xml;base64,")
    assert result.audio_text
    assert result.media_failed is False
    assert sorted(fake_llm.kinds()[2:]) == [METADATA, NARRATION]


@pytest.mark.integration
def test_media_failure_is_reported_not_raised(fake_llm):
    fake_llm.set(NARRATION, RuntimeError("quota exceeded"))

    result = run_pipeline("Explain REST APIs in MERN Stack", 3)

    assert result.markdown is not None
    assert result.image_url is not None
    assert result.audio_text is None
    assert result.media_failed is True


@pytest.mark.integration
def test_duration_is_clamped(fake_llm):
    assert run_pipeline("Explain heaps", 42).duration == 5
    assert "750 words" in fake_llm.call_for(TUTOR)["system_instruction"]
    assert run_pipeline("Explain heaps", "soon").duration == 3
    assert run_pipeline("Explain heaps", 0).duration == 2


@pytest.mark.integration
@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query_is_rejected_before_running(fake_llm, query):
    with pytest.raises(InvalidQueryError):
        run_pipeline(query)

    assert fake_llm.calls == []


@pytest.mark.integration
def test_unexpected_stage_error_surfaces_as_pipeline_error(fake_llm, monkeypatch):
    def _boom(*_args, **_kwargs):
        raise RuntimeError("catalog unavailable")

    monkeypatch.setattr(workflow, "run_classifier", _boom)

    with pytest.raises(PipelineError) as excinfo:
        run_pipeline("Explain heaps")

    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.integration
def test_budget_overrun_raises_timeout(fake_llm):
    # Rejects once it wakes up so the abandoned run makes no further calls
    def _slow(_prompt):
        time.sleep(0.5)
        return _verdict("irrelevant")

    fake_llm.set(CLASSIFY, _slow)

    with pytest.raises(PipelineTimeoutError):
        run_pipeline("Explain heaps", timeout=0.05)


@pytest.mark.integration
def test_payload_uses_camel_case(fake_llm):
    payload = run_pipeline("Explain REST APIs in MERN Stack", 3).to_payload()

    assert set(payload) == {
        "query",
        "duration",
        "topic",
        "rejected",
        "rejectionReason",
        "classification",
        "markdown",
        "imageUrl",
        "audioText",
        "mediaFailed",
    }


@pytest.mark.unit
def test_compiled_graph_is_a_singleton():
    assert get_app() is get_app()


@pytest.mark.unit
@pytest.mark.parametrize(
    "stage, state, expected",
    [
        ("classify", {"rejected": True}, END),
        ("classify", {"rejected": False}, "content"),
        ("classify", {}, "content"),
        ("content", {"rejected": False}, "media"),
        ("media", {}, END),
    ],
)
def test_next_stage(stage, state, expected):
    assert next_stage(stage, state) == expected
