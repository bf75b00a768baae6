# app/shared/deps.py
from functools import lru_cache

from app.shared.clock import Clock, SystemClock
from app.shared.config import settings
from app.summaries.summarizer import ExtractiveSummarizer, OpenAISummarizer, Summarizer

@lru_cache()
def get_clock() -> Clock:
    return SystemClock()

@lru_cache()
def get_summarizer() -> Summarizer:
    if settings.SUMMARIZER_API_KEY:
        return OpenAISummarizer(
            base_url=settings.SUMMARIZER_BASE_URL,
            api_key=settings.SUMMARIZER_API_KEY,
            model=settings.SUMMARIZER_MODEL,
            timeout_s=settings.SUMMARIZER_TIMEOUT_S,
            max_chars=settings.SUMMARIZER_MAX_CHARS,
        )
    return ExtractiveSummarizer()
