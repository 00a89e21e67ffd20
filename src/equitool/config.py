"""Configuration models for the cross-reference service."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

DEFAULT_MODELS = ("gpt-4o-mini", "gpt-4o", "gpt-4.1-mini")
DEFAULT_GEMINI_MODELS = ("gemini-2.5-flash", "gemini-2.5-pro", "gemini-2.0-flash")


def _clean_models(value: list[str]) -> list[str]:
    models = [name.strip() for name in value if name and name.strip()]
    if not models:
        raise ValueError("at least one model identifier is required")
    return models


class GatewayConfig(BaseModel):
    """Configures the structured resolve call and its model fallback order."""

    models: list[str] = Field(default_factory=lambda: list(DEFAULT_MODELS))
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_sources: int = Field(default=3, ge=0)
    grounding: bool = False

    @field_validator("models")
    @classmethod
    def _models_not_empty(cls, value: list[str]) -> list[str]:
        return _clean_models(value)


class ChatConfig(BaseModel):
    """Configures the best-effort technical support chat."""

    models: list[str] = Field(default_factory=lambda: list(DEFAULT_MODELS))
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)

    @field_validator("models")
    @classmethod
    def _models_not_empty(cls, value: list[str]) -> list[str]:
        return _clean_models(value)
