import logging

from config import DEFAULT_DURATION, TUTOR_TEMPERATURE, WORDS_PER_MINUTE
from services.llm import generate

logger = logging.getLogger(__name__)

DURATION_MAP = {
    2: (300, "concise"),
    3: (450, "moderate"),
    4: (600, "detailed"),
    5: (750, "comprehensive"),
}

SYSTEM_INSTRUCTION = """You are an expert AI Tutor specializing in campus placement preparation. You create clear,
structured, pedagogically sound walkthroughs for students.

AVAILABLE TOPICS FOR CONTEXT:
{topics}

INSTRUCTIONS:
- Write a step-by-step walkthrough in well-formatted Markdown.
- Target approximately {word_count} words ({duration} minutes of reading at ~{wpm} words/min).
- Structure the response as a {label} explanation.
- Use headers (##, ###), bullet points, code blocks where relevant, and bold for key terms.
- Start from fundamentals and build up; include practical examples where relevant.
- End with a "Key Takeaways" section of 2-3 bullets.

Do NOT include introductory phrases like "Sure!" or "Here's your explanation". Jump straight into the content.
"""


def duration_profile(duration: int) -> tuple[int, str]:
    return DURATION_MAP.get(duration, DURATION_MAP[DEFAULT_DURATION])


def _error_markdown(topic: str, error: Exception) -> str:
    return (
        "## ⚠️ Content Generation Error\n\n"
        f'We encountered an issue generating content for "{topic}". Please try again.\n\n'
        f"*Error: {error}*"
    )


def run_tutor(topic: str, duration: int, catalog_context: str) -> str:
    word_count, label = duration_profile(duration)

    logger.info("Writing %s walkthrough on %r (~%d words)", label, topic, word_count)

    system_instruction = SYSTEM_INSTRUCTION.format(
        topics=catalog_context,
        word_count=word_count,
        duration=duration,
        wpm=WORDS_PER_MINUTE,
        label=label,
    )

    try:
        response = generate(
            f"Create a walkthrough on: {topic}",
            system_instruction=system_instruction,
            temperature=TUTOR_TEMPERATURE,
        )
    except Exception as e:
        logger.error("Content generation failed for %r: %s", topic, e)
        return _error_markdown(topic, e)

    markdown = response.strip()
    if not markdown:
        logger.error("Content generation returned a blank walkthrough for %r", topic)
        return _error_markdown(topic, "empty response from the model")

    logger.info("Received walkthrough (%d chars)", len(markdown))
    return markdown
