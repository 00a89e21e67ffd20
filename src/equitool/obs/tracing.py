"""Tracing and cost accounting for reasoning-service calls."""

from __future__ import annotations

import re
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone

from equitool.types import ModelAttempt

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    operation: str
    brand: str
    outcome: str
    model: str | None
    attempts: list[ModelAttempt]
    input_tokens: int
    output_tokens: int
    estimated_cost_usd: float
    latency_ms: float
    error: str | None = None
    source_count: int = 0
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class CostModel:
    """Simple token pricing model (USD per 1K tokens)."""

    input_per_1k: float = 0.005
    output_per_1k: float = 0.015

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens / 1000.0) * self.input_per_1k + (
            output_tokens / 1000.0
        ) * self.output_per_1k


class TraceStore:
    """In-memory trace storage for resolve and chat calls.

    Keeps at most `max_records` entries; the oldest are evicted first.
    """

    def __init__(
        self, *, cost_model: CostModel | None = None, max_records: int = 1000
    ) -> None:
        if max_records < 1:
            raise ValueError("max_records must be positive")
        self._records: OrderedDict[str, TraceRecord] = OrderedDict()
        self._max_records = max_records
        self._cost_model = cost_model or CostModel()

    def create_record(
        self,
        *,
        operation: str,
        brand: str,
        outcome: str,
        model: str | None,
        attempts: list[ModelAttempt],
        input_tokens: int,
        output_tokens: int,
        latency_ms: float,
        error: str | None = None,
        source_count: int = 0,
        metadata: dict[str, str] | None = None,
    ) -> TraceRecord:
        trace_id = str(uuid.uuid4())
        record = TraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            operation=operation,
            brand=brand,
            outcome=outcome,
            model=model,
            attempts=list(attempts),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost_usd=self._cost_model.estimate_cost(input_tokens, output_tokens),
            latency_ms=latency_ms,
            error=error,
            source_count=source_count,
            metadata=dict(metadata or {}),
        )
        self._records[trace_id] = record
        while len(self._records) > self._max_records:
            self._records.popitem(last=False)
        return record

    def __len__(self) -> int:
        return len(self._records)

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int]:
        """Aggregate call metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "failed_requests": 0,
                "fallback_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "avg_attempts": 0.0,
                "total_input_tokens": 0,
                "total_output_tokens": 0,
                "total_estimated_cost_usd": 0.0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        failed = sum(1 for record in records if record.outcome != "ok")
        fallback = sum(1 for record in records if len(record.attempts) > 1)
        attempts = sum(len(record.attempts) for record in records)

        return {
            "total_requests": total,
            "failed_requests": failed,
            "fallback_requests": fallback,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "avg_attempts": attempts / total,
            "total_input_tokens": sum(record.input_tokens for record in records),
            "total_output_tokens": sum(record.output_tokens for record in records),
            "total_estimated_cost_usd": sum(
                record.estimated_cost_usd for record in records
            ),
        }


class Timer:
    """Simple context timer used around gateway calls."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def estimate_token_count(text: str) -> int:
    return len(_TOKEN_PATTERN.findall(text))
