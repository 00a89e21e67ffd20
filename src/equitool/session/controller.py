"""Session state machine owning the current request and result.

States move INPUT -> ANALYZING -> RESULTS; refinement goes RESULTS ->
ANALYZING -> RESULTS; edit and reset return to INPUT. Every resolve call is
tagged with a ticket. `reset`, `edit` and new submissions retire the
outstanding ticket, and an answer arriving for a retired ticket is dropped
instead of overwriting newer state.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from equitool.catalog.models import EquivalencyResult, SearchRequest
from equitool.gateway.errors import (
    RefinementFailure,
    ResolutionError,
    SessionBusyError,
    SessionStateError,
)
from equitool.gateway.gateway import ReasoningGateway
from equitool.query.builder import QueryBuilder
from equitool.types import RequestPayload

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    INPUT = "INPUT"
    ANALYZING = "ANALYZING"
    RESULTS = "RESULTS"


@dataclass(slots=True, frozen=True)
class SessionSnapshot:
    """Read-only view of the session handed to presentation code."""

    state: LifecycleState
    last_request: SearchRequest | None
    result: EquivalencyResult | None
    last_error: str | None = None
    refined_params: dict[str, str] = field(default_factory=dict)


class SessionController:
    """Single-owner controller for one user's cross-reference session."""

    def __init__(
        self,
        *,
        gateway: ReasoningGateway,
        builder: QueryBuilder | None = None,
    ) -> None:
        self.gateway = gateway
        self.builder = builder or QueryBuilder()

        self._lock = threading.Lock()
        self._tickets = itertools.count(1)
        self._active_ticket: int | None = None

        self._state = LifecycleState.INPUT
        self._last_request: SearchRequest | None = None
        self._result: EquivalencyResult | None = None
        self._refined: dict[str, str] = {}
        self._last_error: str | None = None
        self._last_payload: RequestPayload | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def last_request(self) -> SearchRequest | None:
        return self._last_request

    @property
    def result(self) -> EquivalencyResult | None:
        return self._result

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def last_payload(self) -> RequestPayload | None:
        """Payload of the most recent resolve call, for diagnostics."""
        return self._last_payload

    @property
    def refined_params(self) -> dict[str, str]:
        return dict(self._refined)

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot()

    def submit(self, request: SearchRequest) -> SessionSnapshot:
        """Resolve a new request.

        On failure the session returns to INPUT keeping the request; any result
        of an earlier request is dropped so request and result stay paired.
        """
        with self._lock:
            self._ensure_idle()
            payload = self.builder.build(request)
            ticket = self._begin()
            self._last_request = request
            self._refined = {}
            self._last_payload = payload
        logger.info(
            "submit: ticket=%d kind=%s brand=%s",
            ticket,
            request.input_kind.value,
            request.target_brand.value,
        )

        try:
            result = self.gateway.resolve(payload, request.target_brand)
        except ResolutionError as exc:
            with self._lock:
                if self._is_stale(ticket):
                    return self._snapshot()
                logger.warning("submit failed (%s): %s", type(exc).__name__, exc)
                self._result = None
                self._finish(LifecycleState.INPUT, error=exc.user_message)
                return self._snapshot()

        with self._lock:
            if self._is_stale(ticket):
                return self._snapshot()
            self._result = result
            self._finish(LifecycleState.RESULTS)
            return self._snapshot()

    def refine(self, extra_params: Mapping[str, str]) -> SessionSnapshot:
        """Re-resolve the stored request with `extra_params` added to its context.

        Only valid from RESULTS. Parameters from earlier successful refinements
        are kept; a failed refinement leaves the previous result and parameters
        untouched.
        """
        with self._lock:
            self._ensure_idle()
            if (
                self._state is not LifecycleState.RESULTS
                or self._last_request is None
                or self._result is None
            ):
                raise SessionStateError(
                    f"refine requires a result to refine, state is {self._state.value}"
                )
            request = self._last_request
            merged = {**self._refined, **{str(k): str(v) for k, v in extra_params.items()}}
            payload = self.builder.build(request, refined_params=merged)
            ticket = self._begin()
            self._last_payload = payload
        logger.info("refine: ticket=%d params=%s", ticket, sorted(merged))

        try:
            result = self.gateway.resolve(payload, request.target_brand, operation="refine")
        except ResolutionError as exc:
            with self._lock:
                if self._is_stale(ticket):
                    return self._snapshot()
                logger.warning("refine failed (%s): %s", type(exc).__name__, exc)
                self._finish(LifecycleState.RESULTS, error=RefinementFailure.user_message)
                return self._snapshot()

        with self._lock:
            if self._is_stale(ticket):
                return self._snapshot()
            self._result = result
            self._refined = merged
            self._finish(LifecycleState.RESULTS)
            return self._snapshot()

    def reset(self) -> SessionSnapshot:
        """Forget the request and result and return to INPUT."""
        with self._lock:
            self._retire()
            self._last_request = None
            self._result = None
            self._refined = {}
            self._last_payload = None
            self._finish(LifecycleState.INPUT)
            return self._snapshot()

    def edit(self) -> SessionSnapshot:
        """Return to INPUT keeping the stored request for pre-population."""
        with self._lock:
            self._retire()
            self._finish(LifecycleState.INPUT)
            return self._snapshot()

    def _ensure_idle(self) -> None:
        if self._state is LifecycleState.ANALYZING:
            raise SessionBusyError("a request is already being analyzed")

    def _begin(self) -> int:
        ticket = next(self._tickets)
        self._active_ticket = ticket
        self._state = LifecycleState.ANALYZING
        self._last_error = None
        return ticket

    def _retire(self) -> None:
        if self._active_ticket is not None:
            logger.info("retiring outstanding ticket=%d", self._active_ticket)
        self._active_ticket = None

    def _is_stale(self, ticket: int) -> bool:
        if ticket == self._active_ticket:
            return False
        logger.info("dropping stale response for ticket=%d", ticket)
        return True

    def _finish(self, state: LifecycleState, *, error: str | None = None) -> None:
        self._active_ticket = None
        self._state = state
        self._last_error = error

    def _snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            last_request=self._last_request,
            result=self._result,
            last_error=self._last_error,
            refined_params=dict(self._refined),
        )
