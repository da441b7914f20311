import logging
import threading

from google import genai

from config import GEMINI_MODEL, GOOGLE_API_KEY, LLM_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_client: genai.Client | None = None
_client_lock = threading.Lock()


class LLMError(Exception):
    """Raised when the provider answers without any usable text."""


def _get_client() -> genai.Client:
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                if not GOOGLE_API_KEY:
                    raise ValueError("GOOGLE_API_KEY is not set. Add it to your .env file.")
                _client = genai.Client(
                    api_key=GOOGLE_API_KEY,
                    http_options=genai.types.HttpOptions(
                        timeout=int(LLM_TIMEOUT_SECONDS * 1000),
                    ),
                )
    return _client


def generate(
    prompt: str,
    system_instruction: str = "",
    *,
    temperature: float | None = None,
    max_output_tokens: int | None = None,
) -> str:
    client = _get_client()

    logger.info("Calling Gemini (%s, temperature=%s)", GEMINI_MODEL, temperature)

    config = genai.types.GenerateContentConfig(
        system_instruction=system_instruction or None,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
    )

    response = client.models.generate_content(
        model=GEMINI_MODEL,
        contents=prompt,
        config=config,
    )

    if not response.text or not response.text.strip():
        raise LLMError(f"Empty completion from {GEMINI_MODEL}")

    return response.text
