"""Ordered model fallback used by every reasoning-service call."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from time import perf_counter
from typing import TypeVar

from equitool.types import ModelAttempt

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_fallback(
    models: Sequence[str],
    attempt: Callable[[str], T],
    *,
    observer: Callable[[ModelAttempt], None] | None = None,
    label: str = "generation",
) -> T:
    """Try each model in order and return the first successful result.

    Attempts are strictly sequential: a model is only tried once the previous
    one has finished failing. When the last model fails its exception is
    re-raised unchanged.

    Raises:
        ValueError: If `models` is empty.
    """

    if not models:
        raise ValueError("run_with_fallback requires at least one model")

    last_index = len(models) - 1
    for index, model in enumerate(models):
        logger.debug("%s: attempting model %s", label, model)
        start = perf_counter()
        try:
            result = attempt(model)
        except Exception as exc:
            latency_ms = (perf_counter() - start) * 1000.0
            if observer is not None:
                observer(
                    ModelAttempt(model=model, ok=False, latency_ms=latency_ms, error=str(exc))
                )
            if index == last_index:
                logger.error("%s: final model %s failed: %s", label, model, exc)
                raise
            logger.warning("%s: model %s failed, trying next: %s", label, model, exc)
            continue

        if observer is not None:
            observer(
                ModelAttempt(
                    model=model, ok=True, latency_ms=(perf_counter() - start) * 1000.0
                )
            )
        return result

    raise AssertionError("unreachable")  # pragma: no cover
