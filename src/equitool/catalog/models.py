"""Pydantic records exchanged between the wizard, the gateway and the session.

Every record serializes with the camelCase names used on the wire (and in the
reasoning service's JSON answer) while Python code uses snake_case attributes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from equitool.catalog.enums import (
    OPERATION_MAP,
    Brand,
    Coolant,
    Expectation,
    InputKind,
    Material,
    Operation,
    ReplacementStrategy,
    SubOperation,
)

DEFAULT_MIME_TYPES = {
    InputKind.IMAGE: "image/jpeg",
    InputKind.PDF: "application/pdf",
}


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OperationParams(_Record):
    """Open record of engineering parameters; unknown names are kept as extras."""

    model_config = ConfigDict(extra="allow")

    # cutting parameters
    vc: str | None = None
    fn: str | None = None
    ap: str | None = None
    ae: str | None = None
    pitch: str | None = None
    overhang: str | None = None

    # dimensional data
    workpiece_diameter: str | None = None
    parting_diameter: str | None = None
    groove_width: str | None = None
    groove_depth: str | None = None

    # application and machine
    material_hardness: str | None = None
    workpiece_stability: str | None = None
    coolant: Coolant | None = None
    machine_power: str | None = None

    failure_mode: str | None = None
    expectation: Expectation | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def extras(self) -> dict[str, str]:
        """Supplied parameters outside the known field set, blanks dropped."""
        return {
            key: str(value)
            for key, value in (self.model_extra or {}).items()
            if value is not None and str(value).strip()
        }


class ApplicationContext(_Record):
    operation_type: Operation | None = None
    sub_operation_type: SubOperation | None = None
    material: Material | None = None
    params: OperationParams = Field(default_factory=OperationParams)

    @model_validator(mode="after")
    def _sub_operation_in_family(self) -> "ApplicationContext":
        if self.sub_operation_type is None:
            return self
        if self.operation_type is None:
            raise ValueError(
                f"sub-operation {self.sub_operation_type.value!r} requires an operation"
            )
        allowed = OPERATION_MAP[self.operation_type]
        if self.sub_operation_type not in allowed:
            raise ValueError(
                f"sub-operation {self.sub_operation_type.value!r} does not belong "
                f"to {self.operation_type.value!r}"
            )
        return self


class SearchRequest(_Record):
    """One submitted query. `content` is raw text or base64 data."""

    content: str = Field(min_length=1)
    input_kind: InputKind
    target_brand: Brand
    context: ApplicationContext = Field(default_factory=ApplicationContext)
    mime_type: str | None = None

    @property
    def media_type(self) -> str | None:
        if not self.input_kind.is_binary:
            return None
        return self.mime_type or DEFAULT_MIME_TYPES[self.input_kind]


class ToolSpecs(_Record):
    iso_code: str | None = None
    grade: str | None = None
    coating: str | None = None
    material: str | None = None
    geometry: str | None = None
    application: str | None = None
    cutting_speed: str | None = None
    feed_rate: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ProductInfo(_Record):
    brand: str = ""
    name: str = ""
    part_number: str = ""
    description: str = ""
    specs: ToolSpecs = Field(default_factory=ToolSpecs)

    @field_validator("brand", "name", "part_number", "description", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("specs", mode="before")
    @classmethod
    def _none_is_empty_specs(cls, value: Any) -> Any:
        return {} if value is None else value


class Source(_Record):
    uri: str = Field(min_length=1)
    title: str = ""


class EquivalencyResult(_Record):
    """Full answer envelope for one query or refinement."""

    competitor: ProductInfo
    recommendation: ProductInfo
    alternatives: list[ProductInfo] = Field(default_factory=list)
    reasoning: str = ""
    confidence_score: int = Field(ge=0, le=100)
    sources: list[Source] = Field(default_factory=list)
    missing_params: list[str] = Field(default_factory=list)
    educational_tip: str | None = None
    replacement_strategy: ReplacementStrategy | None = None

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().rstrip("%")
            try:
                value = float(value)
            except ValueError:
                return value
        if isinstance(value, float):
            value = round(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return min(100, max(0, value))
        return value

    @field_validator("replacement_strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        normalized = value.strip().upper().replace(" ", "_").replace("-", "_")
        if normalized not in ReplacementStrategy.__members__:
            return None
        return normalized

    @field_validator("alternatives", "sources", "missing_params", mode="before")
    @classmethod
    def _none_is_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("missing_params")
    @classmethod
    def _drop_blank_params(cls, value: list[str]) -> list[str]:
        return [param.strip() for param in value if param.strip()]

    @property
    def is_denied(self) -> bool:
        """Exactly zero confidence means the service found no match."""
        return self.confidence_score == 0

    @property
    def needs_refinement(self) -> bool:
        return bool(self.missing_params)

    def candidates(self) -> list[ProductInfo]:
        return [self.recommendation, *self.alternatives]
