from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Protocol, Union

import httpx

from app.shared.errors import SummarizationError

logger = logging.getLogger(__name__)

SummaryInput = Union[str, list[str]]

SYSTEM_PROMPT = (
    "You summarize personal notes and to-do lists. "
    "Reply with a short plain-text summary (at most five sentences) that keeps names, dates and action items."
)


class ExternalAIError(RuntimeError):
    pass


class Summarizer(Protocol):
    def summarize(self, title: str, text: SummaryInput) -> str: ...


def _render(title: str, text: SummaryInput) -> str:
    if isinstance(text, list):
        body = "\n".join(f"- {t.strip()}" for t in text)
    else:
        body = text.strip()
    return f"Title: {title.strip()}\n\n{body}" if title and title.strip() else body


def _join_base(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


class ExtractiveSummarizer:
    """Offline fallback: first paragraphs (or first items) of the input, truncated."""

    def __init__(self, *, max_chars: int = 900, max_items: int = 3) -> None:
        self.max_chars = max_chars
        self.max_items = max_items

    def summarize(self, title: str, text: SummaryInput) -> str:
        if isinstance(text, list):
            parts = [t.strip() for t in text if t.strip()]
        else:
            parts, buf = [], []
            for ln in (ln.strip() for ln in text.splitlines()):
                if not ln:
                    if buf:
                        parts.append(" ".join(buf))
                        buf = []
                    continue
                buf.append(ln)
            if buf:
                parts.append(" ".join(buf))
        summary = "\n\n".join(parts[: self.max_items]).strip()
        if title and title.strip() and summary:
            summary = f"{title.strip()}: {summary}"
        return summary[: self.max_chars].rstrip()


class OpenAISummarizer:
    """Calls an OpenAI-compatible /v1/chat/completions endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        model: str,
        timeout_s: float = 20.0,
        max_chars: int = 20000,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s
        self.max_chars = max_chars
        self.transport = transport

    def summarize(self, title: str, text: SummaryInput) -> str:
        url = _join_base(self.base_url, "/v1/chat/completions")
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": _render(title, text)[: self.max_chars]},
            ],
            "temperature": 0.2,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                resp = client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise ExternalAIError("external_request_failed") from e

        if resp.status_code >= 400:
            raise ExternalAIError(f"external_http_{resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExternalAIError("external_bad_response") from e
        if not isinstance(content, str):
            raise ExternalAIError("external_bad_response")
        return content.strip()


_pool = ThreadPoolExecutor(max_workers=8, thread_name_prefix="summarizer")


def call_summarizer(summarizer: Summarizer, title: str, text: SummaryInput, timeout_s: float) -> str:
    """
    Run one summarizer call under a hard deadline.

    Every failure mode (exception, deadline exceeded, blank output) comes out as
    SummarizationError. A call that overruns keeps running in its worker thread
    but its result is dropped.
    """
    future = _pool.submit(summarizer.summarize, title, text)
    try:
        result = future.result(timeout=timeout_s)
    except FutureTimeout as e:
        future.cancel()
        logger.warning("summarizer timed out after %.1fs", timeout_s)
        raise SummarizationError("Summarizer timed out") from e
    except Exception as e:
        logger.warning("summarizer failed: %s", e)
        raise SummarizationError(details=str(e)) from e

    if not isinstance(result, str) or not result.strip():
        logger.warning("summarizer returned an empty result")
        raise SummarizationError("Summarizer returned an empty summary")
    return result.strip()
