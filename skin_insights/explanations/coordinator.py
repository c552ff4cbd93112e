"""
Explanation coordinator: cached, single-flight explanation generation with a
template fallback.

Per-key lifecycle
-----------------
    Absent -> Generating -> Cached -> Expired -> Generating -> Cached -> ...

Read path
---------
1. A fresh (non-expired) cache entry is returned immediately, no locking
   beyond the short cache lock.
2. Otherwise the caller takes the coordinator-wide generation lock, re-checks
   the cache (another caller may have filled it while this one waited) and
   only then calls ``generate``.

Guarantees
----------
- At most one generation runs at a time per coordinator.  Concurrent callers
  for the same key wait for the in-flight generation and share its result;
  the generator is invoked exactly once.
- ``generate`` never propagates: any exception, or blank text, becomes the
  template fallback, which is cached with ``is_generator_backed=False``.
- Entries older than the TTL are expired on the next read and regenerated.
  Time comes from an injected clock so expiry is testable without sleeping.
- ``clear_cache`` / ``clear_expired`` only remove entries and never wait for
  an in-flight generation.

Deadlines
---------
The coordinator has no mid-generation cancellation.  ``get_explanation_within``
runs the request on a worker thread; on timeout the caller gets the fallback
immediately and the generation keeps running so the cache is warm next time.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime, timedelta
from functools import partial
from typing import Optional, Union

from skin_insights.explanations.generator import TextGenerator
from skin_insights.explanations.templates import (
    build_recommendation_prompt,
    template_explanation,
)
from skin_insights.models.assessment import Assessment
from skin_insights.models.explanation import CachedExplanation
from skin_insights.models.recommendation import Recommendation
from skin_insights.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=7)

Fallback = Union[str, Callable[[], str]]


def explanation_key(assessment_id: str, item_id: str) -> str:
    """Cache key for one (assessment, item) pair."""
    return f"{assessment_id}_{item_id}"


class ExplanationCoordinator:
    """Process-wide explanation cache with single-flight generation.

    Construct once and share.  Thread-safe.

    Usage::

        coordinator = ExplanationCoordinator()
        text = coordinator.explain(assessment, recommendation, generator)

    Args:
        ttl:            Age after which a cached entry is regenerated.
        clock:          Zero-argument callable returning an aware UTC datetime.
        max_background: Worker threads for ``get_explanation_within``.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
        max_background: int = 2,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError(f"ttl must be positive, got {ttl}.")
        self._ttl = ttl
        self._clock = clock
        self._max_background = max_background
        self._cache: dict[str, CachedExplanation] = {}
        self._cache_lock = threading.Lock()
        self._generation_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._generation_count = 0

    # ── Introspection ─────────────────────────────────────────────────────────

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def generation_count(self) -> int:
        """Number of generation attempts started (generator-backed or not)."""
        return self._generation_count

    def __len__(self) -> int:
        with self._cache_lock:
            return len(self._cache)

    def peek(self, key: str) -> Optional[CachedExplanation]:
        """Cached entry for ``key`` regardless of age, or ``None``."""
        with self._cache_lock:
            return self._cache.get(key)

    def is_expired(self, entry: CachedExplanation) -> bool:
        return self._clock() - entry.generated_at > self._ttl

    # ── Core read path ────────────────────────────────────────────────────────

    def get_explanation(
        self,
        key: str,
        generate: Optional[Callable[[], str]],
        fallback: Fallback,
    ) -> str:
        """Return the explanation for ``key``, generating it at most once.

        Args:
            key:      Cache key (see ``explanation_key``).
            generate: Possibly slow call to the text generator, or ``None``
                      when generation is disabled.
            fallback: Template text, or a callable producing it.

        Returns:
            Non-empty explanation text.  Never raises for generator failures.
        """
        cached = self._fresh(key)
        if cached is not None:
            logger.debug("Explanation cache hit for %s.", key)
            return cached.text

        with self._generation_lock:
            cached = self._fresh(key)
            if cached is not None:
                return cached.text

            text, generator_backed = self._generate(key, generate, fallback)
            entry = CachedExplanation(
                key=key,
                text=text,
                generated_at=self._clock(),
                is_generator_backed=generator_backed,
            )
            with self._cache_lock:
                self._cache[key] = entry
            return entry.text

    def get_explanation_within(
        self,
        key: str,
        generate: Optional[Callable[[], str]],
        fallback: Fallback,
        timeout: float,
    ) -> str:
        """Like ``get_explanation`` but returns the fallback after ``timeout`` seconds.

        On timeout the generation keeps running in the background and fills
        the cache for the next request.  The fallback returned here is not
        cached.
        """
        cached = self._fresh(key)
        if cached is not None:
            return cached.text

        future = self._background().submit(self.get_explanation, key, generate, fallback)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            logger.info(
                "Explanation for %s not ready after %.1fs; showing template.", key, timeout
            )
            return _resolve(fallback)

    # ── Recommendation helpers ────────────────────────────────────────────────

    def explain(
        self,
        assessment: Assessment,
        recommendation: Recommendation,
        generator: Optional[TextGenerator] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Explanation for one recommended item.

        Args:
            assessment:     Assessment the item was scored against.
            recommendation: The scored item.
            generator:      Text generator, or ``None`` for template only.
            timeout:        Optional caller deadline in seconds.
        """
        key = explanation_key(assessment.assessment_id, recommendation.item.item_id)

        generate: Optional[Callable[[], str]] = None
        if generator is not None:
            generate = partial(
                generator.generate, build_recommendation_prompt(assessment, recommendation)
            )
        fallback = partial(template_explanation, recommendation, assessment)

        if timeout is None:
            return self.get_explanation(key, generate, fallback)
        return self.get_explanation_within(key, generate, fallback, timeout)

    def explain_all(
        self,
        assessment: Assessment,
        recommendations: Iterable[Recommendation],
        generator: Optional[TextGenerator] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, str]:
        """Item id -> explanation for every recommendation, in input order."""
        return {
            rec.item.item_id: self.explain(assessment, rec, generator, timeout)
            for rec in recommendations
        }

    # ── Maintenance ───────────────────────────────────────────────────────────

    def clear_cache(self) -> int:
        """Drop every entry.  Returns the number removed."""
        with self._cache_lock:
            removed = len(self._cache)
            self._cache.clear()
        logger.info("Explanation cache cleared (%d entries).", removed)
        return removed

    def clear_expired(self) -> int:
        """Drop entries older than the TTL.  Returns the number removed."""
        with self._cache_lock:
            expired = [k for k, e in self._cache.items() if self.is_expired(e)]
            for k in expired:
                del self._cache[k]
        if expired:
            logger.info("Removed %d expired explanations.", len(expired))
        return len(expired)

    def close(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """Shut down the background worker pool, if it was started.

        Args:
            wait:           Block until running generations finish.
            cancel_pending: Drop queued generations that have not started.
        """
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=cancel_pending)

    def __enter__(self) -> "ExplanationCoordinator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Internals ─────────────────────────────────────────────────────────────

    def _fresh(self, key: str) -> Optional[CachedExplanation]:
        with self._cache_lock:
            entry = self._cache.get(key)
        if entry is None or self.is_expired(entry):
            return None
        return entry

    def _generate(
        self,
        key: str,
        generate: Optional[Callable[[], str]],
        fallback: Fallback,
    ) -> tuple[str, bool]:
        """Run one generation attempt.  Caller holds the generation lock."""
        self._generation_count += 1
        if generate is None:
            logger.debug("No generator for %s; using template.", key)
            return _resolve(fallback), False
        try:
            text = generate()
            if not isinstance(text, str) or not text.strip():
                raise ValueError("generator returned empty text")
            return text.strip(), True
        except Exception:
            logger.warning(
                "Explanation generation failed for %s; using template.", key, exc_info=True
            )
            return _resolve(fallback), False

    def _background(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_background,
                    thread_name_prefix="explanation",
                )
            return self._executor


def _resolve(fallback: Fallback) -> str:
    text = fallback() if callable(fallback) else fallback
    return text.strip() or "This product was selected to match your skin profile."
