"""Shared pytest fixtures for the tutor pipeline tests."""

import json
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


CLASSIFY = "classify"
TUTOR = "tutor"
METADATA = "metadata"
NARRATION = "narration"

SAMPLE_MARKDOWN = """## REST APIs in the MERN Stack

- **Resources** are exposed as URLs served by Express.
- **HTTP verbs** map to CRUD operations on MongoDB documents.

```js
app.get("/api/users", listUsers);
```

## Key Takeaways
- Keep endpoints resource-oriented.
- Use status codes consistently."""

SAMPLE_METADATA = {
    "title": "REST API Design",
    "subtitle": "Designing clean HTTP endpoints in Express",
    "keyConcepts": ["Resources", "HTTP Verbs", "Status Codes", "Statelessness"],
    "category": "web",
    "codeSnippet": "app.get('/users', (req, res) => {\\n  res.json(users);\\n});",
    "interviewTip": "Explain idempotency of PUT versus POST.",
}

SAMPLE_NARRATION = (
    "REST APIs let a React front end talk to an Express server. "
    "Each resource gets its own URL and the HTTP verb says what to do with it."
)


def _kind(prompt: str, system_instruction: str) -> str:
    if "classification agent" in system_instruction:
        return CLASSIFY
    if "AI Tutor specializing" in system_instruction:
        return TUTOR
    if "text-to-speech" in prompt:
        return NARRATION
    if "infographic" in prompt:
        return METADATA
    raise AssertionError(f"Unexpected LLM prompt: {prompt[:80]!r}")


class ScriptedLLM:
    """Stand-in for ``services.llm.generate`` that answers by prompt kind.

    A reply may be a string, an exception instance (raised) or a callable
    taking the prompt.
    """

    def __init__(self):
        self.replies = {
            CLASSIFY: json.dumps({
                "classification": "placement_topic",
                "reason": "Web development interview topic",
                "detectedTopic": "REST API Design",
            }),
            TUTOR: SAMPLE_MARKDOWN,
            METADATA: json.dumps(SAMPLE_METADATA),
            NARRATION: SAMPLE_NARRATION,
        }
        self.calls: list[dict] = []

    def set(self, kind: str, reply) -> None:
        self.replies[kind] = reply

    def kinds(self) -> list[str]:
        return [call["kind"] for call in self.calls]

    def call_for(self, kind: str) -> dict:
        return next(call for call in self.calls if call["kind"] == kind)

    def __call__(self, prompt, system_instruction="", *, temperature=None, max_output_tokens=None):
        kind = _kind(prompt, system_instruction)
        self.calls.append({
            "kind": kind,
            "prompt": prompt,
            "system_instruction": system_instruction,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        })
        reply = self.replies[kind]
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


@pytest.fixture
def fake_llm(monkeypatch) -> ScriptedLLM:
    """Route every agent's LLM call through a ScriptedLLM."""
    llm = ScriptedLLM()
    monkeypatch.setattr("agents.classifier.generate", llm)
    monkeypatch.setattr("agents.tutor.generate", llm)
    monkeypatch.setattr("agents.media.generate", llm)
    return llm


@pytest.fixture
def sample_metadata():
    from models.tutor import ImageMetadata

    return ImageMetadata.model_validate(SAMPLE_METADATA)
