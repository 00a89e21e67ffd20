"""Error taxonomy for resolve, refinement and chat calls.

All errors inherit from ``EquiToolError`` so callers can catch the whole
family. ``ResolutionError`` covers everything that makes a resolve call fail;
the session layer turns it into a user-facing message.
"""

from __future__ import annotations

from typing import Any

EXTRACTION_MESSAGE = (
    "We couldn't identify the product in your input. Please try a clearer photo "
    "or a more specific part number."
)
REFINEMENT_MESSAGE = "Failed to refine results. Please try again."


class EquiToolError(Exception):
    """Base exception for the cross-reference service."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ResolutionError(EquiToolError):
    """A resolve call produced no usable result."""

    user_message = EXTRACTION_MESSAGE


class InputExtractionFailure(ResolutionError):
    """The reasoning service could not identify any product from the input."""


class ServiceUnavailable(ResolutionError):
    """Every candidate model failed (network, quota or service error)."""

    def __init__(
        self,
        message: str = "All candidate models failed",
        *,
        model: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.model = model


class SchemaViolation(ServiceUnavailable):
    """The answer could not be parsed or validated even after repair."""


class RefinementFailure(EquiToolError):
    """A refinement round trip failed; the previous result stays in place."""

    user_message = REFINEMENT_MESSAGE


class ConversationFailure(EquiToolError):
    """A chat call failed on every candidate model."""


class SessionStateError(EquiToolError):
    """A session transition was requested from a state that does not allow it."""


class SessionBusyError(SessionStateError):
    """A resolve call is already outstanding."""
