import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from langgraph.graph import END, StateGraph

from agents.classifier import run_classifier
from agents.media import run_media
from agents.tutor import run_tutor
from config import PIPELINE_TIMEOUT_SECONDS
from graph.errors import InvalidQueryError, PipelineError, PipelineTimeoutError
from graph.state import PipelineState, create_initial_state
from models.tutor import TutorResponse
from services.catalog import get_catalog

logger = logging.getLogger(__name__)


# --- Node functions: each stage absorbs its own failures ---


def classify(state: PipelineState) -> dict:
    logger.info("Step 1/3: Classifying query %r", state["query"])
    result = run_classifier(state["query"], get_catalog().to_context_string())
    return {
        "classification": result.classification,
        "rejected": result.rejected,
        "rejection_reason": result.rejection_reason,
        "topic": result.topic,
    }


def write_content(state: PipelineState) -> dict:
    if state.get("rejected"):
        return {}

    logger.info("Step 2/3: Writing walkthrough")
    topic = state.get("topic") or state["query"]
    markdown = run_tutor(topic, state["duration"], get_catalog().to_context_string())
    return {"markdown": markdown}


def generate_media(state: PipelineState) -> dict:
    if state.get("rejected") or not state.get("markdown"):
        return {}

    logger.info("Step 3/3: Generating infographic and narration")
    topic = state.get("topic") or state["query"]
    media = run_media(topic, state["markdown"], state["duration"])
    return {
        "image_url": media.image_url,
        "audio_text": media.audio_text,
        "media_failed": media.media_failed,
    }


# --- Routing ---

ENTRY_STAGE = "classify"

NODES = {
    "classify": classify,
    "content": write_content,
    "media": generate_media,
}

# stage -> outcome -> next stage
ROUTES: dict[str, dict[str, str]] = {
    "classify": {"rejected": END, "accepted": "content"},
    "content": {"done": "media"},
    "media": {"done": END},
}


def _outcome(stage: str, state: PipelineState) -> str:
    if stage == "classify":
        return "rejected" if state.get("rejected") else "accepted"
    return "done"


def next_stage(stage: str, state: PipelineState) -> str:
    return ROUTES[stage][_outcome(stage, state)]


def _router(stage: str):
    def route(state: PipelineState) -> str:
        return next_stage(stage, state)

    route.__name__ = f"route_after_{stage}"
    return route


def build_workflow() -> StateGraph:
    workflow = StateGraph(PipelineState)

    for name, node in NODES.items():
        workflow.add_node(name, node)

    workflow.set_entry_point(ENTRY_STAGE)

    for stage, outcomes in ROUTES.items():
        targets = set(outcomes.values())
        workflow.add_conditional_edges(stage, _router(stage), {t: t for t in targets})

    return workflow


def compile_app():
    return build_workflow().compile()


_app = None
_app_lock = threading.Lock()


def get_app():
    """Return the process-wide compiled graph, building it on first use."""
    global _app
    if _app is None:
        with _app_lock:
            if _app is None:
                logger.info("Compiling tutor pipeline graph")
                _app = compile_app()
    return _app


def _to_response(state: dict) -> TutorResponse:
    return TutorResponse(
        query=state["query"],
        duration=state["duration"],
        topic=state.get("topic"),
        rejected=bool(state.get("rejected")),
        rejection_reason=state.get("rejection_reason"),
        classification=state.get("classification"),
        markdown=state.get("markdown"),
        image_url=state.get("image_url"),
        audio_text=state.get("audio_text"),
        media_failed=bool(state.get("media_failed")),
    )


def run_pipeline(query: str, duration=None, *, timeout: float | None = None) -> TutorResponse:
    if not isinstance(query, str) or not query.strip():
        raise InvalidQueryError("Query is required")

    initial_state = create_initial_state(query.strip(), duration)
    budget = PIPELINE_TIMEOUT_SECONDS if timeout is None else timeout
    app = get_app()

    logger.info(
        "Running pipeline for %r (duration=%d min, budget=%.0fs)",
        initial_state["query"],
        initial_state["duration"],
        budget,
    )

    # A timed-out run keeps going on its worker thread; only the caller stops waiting
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pipeline")
    future = executor.submit(app.invoke, initial_state)
    try:
        final_state = future.result(timeout=budget)
    except FutureTimeoutError as e:
        logger.error("Pipeline exceeded %.0fs budget for %r", budget, initial_state["query"])
        raise PipelineTimeoutError(f"Pipeline exceeded the {budget:.0f}s budget") from e
    except Exception as e:
        logger.exception("Pipeline failed for %r", initial_state["query"])
        raise PipelineError(str(e)) from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    response = _to_response(final_state)
    logger.info(
        "Pipeline finished: rejected=%s, topic=%r, media_failed=%s",
        response.rejected,
        response.topic,
        response.media_failed,
    )
    return response
