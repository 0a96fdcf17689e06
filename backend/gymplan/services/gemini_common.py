"""
Shared helpers for Gemini: run blocking generate_content in threadpool to avoid blocking the event loop.
Timeout and retry for transient errors (429, 5xx).
"""
from __future__ import annotations

import asyncio
import logging
import re

from starlette.concurrency import run_in_threadpool

from gymplan.config import settings

logger = logging.getLogger(__name__)

# Retry up to 3 times with exponential backoff (1s, 2s) for these status patterns
RETRYABLE_STATUS_PATTERN = re.compile(r"\b(429|5\d{2})\b")
MAX_ATTEMPTS = 3


def _is_retryable_error(exc: BaseException) -> bool:
    """True if the exception looks like 429 or 5xx."""
    msg = (getattr(exc, "message", None) or str(exc)) if exc else ""
    return bool(RETRYABLE_STATUS_PATTERN.search(msg))


async def run_generate_content(model, contents, *, timeout: float | None = None, backoff: float = 1.0):
    """
    Run model.generate_content(contents) in a thread pool with timeout.
    Retries with exponential backoff on timeouts and 429/5xx-like errors.
    """
    timeout = timeout or settings.gemini_request_timeout_seconds or 90
    for attempt in range(MAX_ATTEMPTS):
        try:
            def _call():
                return model.generate_content(contents)
            return await asyncio.wait_for(run_in_threadpool(_call), timeout=float(timeout))
        except asyncio.TimeoutError:
            logger.warning("Gemini request timed out after %ss (attempt %d)", timeout, attempt + 1)
            if attempt == MAX_ATTEMPTS - 1:
                raise
        except Exception as e:
            if attempt == MAX_ATTEMPTS - 1 or not _is_retryable_error(e):
                raise
            logger.warning("Gemini request failed (attempt %d), retrying: %s", attempt + 1, e)
        await asyncio.sleep(backoff * 2 ** attempt)
    raise RuntimeError("run_generate_content: unexpected exit")
