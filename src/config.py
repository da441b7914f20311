import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Per-call HTTP timeout and whole-request wall-clock budget
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
PIPELINE_TIMEOUT_SECONDS = float(os.getenv("PIPELINE_TIMEOUT_SECONDS", "90"))

MIN_DURATION = 2
MAX_DURATION = 5
DEFAULT_DURATION = 3

CLASSIFIER_TEMPERATURE = 0.0
TUTOR_TEMPERATURE = 0.7
MEDIA_TEMPERATURE = 0.5

IMAGE_METADATA_MAX_TOKENS = 500
NARRATION_MAX_TOKENS = 1500
NARRATION_SOURCE_CHARS = 3000
WORDS_PER_MINUTE = 150
