"""Transport-level records shared by the query builder, gateway and session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from equitool.catalog.enums import Role


@dataclass(slots=True, frozen=True)
class ContentPart:
    """One prompt part: either text or inline base64 data with a media type."""

    text: str | None = None
    data: str | None = None
    mime_type: str | None = None

    @property
    def is_inline(self) -> bool:
        return self.data is not None


@dataclass(slots=True, frozen=True)
class RequestPayload:
    """Everything the reasoning service needs for one resolve attempt."""

    system_instruction: str
    parts: tuple[ContentPart, ...]
    raw_input: str
    input_kind: str
    target_brand: str

    def text(self) -> str:
        return "\n".join(part.text for part in self.parts if part.text)


@dataclass(slots=True)
class Generation:
    """Raw answer of a single generate call before repair and validation."""

    model: str
    text: str = ""
    payload: dict[str, Any] | None = None
    sources: list[dict[str, str]] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class ChatMessage:
    id: str
    role: Role
    text: str


@dataclass(slots=True)
class ModelAttempt:
    """Trace record for one candidate model tried by the gateway."""

    model: str
    ok: bool
    latency_ms: float
    error: str | None = None
