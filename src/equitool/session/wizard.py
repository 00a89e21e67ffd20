"""Guided input steps as a pure transition function.

    BRAND -> MATERIAL -> APPLICATION -> INPUT

`advance(state, event)` never mutates `state`; it returns the next state or
raises `InvalidTransition`. The finished state yields the `ApplicationContext`
and `SearchRequest` consumed by the session controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union

from pydantic import ValidationError

from equitool.catalog.enums import (
    Brand,
    InputKind,
    Material,
    Operation,
    SubOperation,
    operation_for,
)
from equitool.catalog.models import ApplicationContext, OperationParams, SearchRequest


class InvalidTransition(ValueError):
    """An event is not allowed in the current wizard state."""


class WizardStep(str, Enum):
    BRAND = "BRAND"
    MATERIAL = "MATERIAL"
    APPLICATION = "APPLICATION"
    INPUT = "INPUT"


_ORDER = (WizardStep.BRAND, WizardStep.MATERIAL, WizardStep.APPLICATION, WizardStep.INPUT)


@dataclass(slots=True, frozen=True)
class SelectBrand:
    brand: Brand


@dataclass(slots=True, frozen=True)
class SelectMaterial:
    material: Material


@dataclass(slots=True, frozen=True)
class SelectOperation:
    operation: Operation


@dataclass(slots=True, frozen=True)
class SelectSubOperation:
    sub_operation: SubOperation


@dataclass(slots=True, frozen=True)
class SetParam:
    name: str
    value: str


@dataclass(slots=True, frozen=True)
class Continue:
    pass


@dataclass(slots=True, frozen=True)
class Back:
    pass


WizardEvent = Union[
    SelectBrand, SelectMaterial, SelectOperation, SelectSubOperation, SetParam, Continue, Back
]


@dataclass(slots=True, frozen=True)
class WizardState:
    step: WizardStep = WizardStep.BRAND
    brand: Brand = Brand.TUNGALOY
    material: Material | None = None
    operation: Operation | None = None
    sub_operation: SubOperation | None = None
    params: OperationParams = field(default_factory=OperationParams)
    # Previously submitted input, kept so an edited search can be resent.
    content: str | None = None
    input_kind: InputKind | None = None
    mime_type: str | None = None

    @classmethod
    def from_request(cls, request: SearchRequest) -> "WizardState":
        """Pre-populate every value of a stored request, landing on INPUT."""
        context = request.context
        return cls(
            step=WizardStep.INPUT,
            brand=request.target_brand,
            material=context.material,
            operation=context.operation_type,
            sub_operation=context.sub_operation_type,
            params=context.params,
            content=request.content,
            input_kind=request.input_kind,
            mime_type=request.mime_type,
        )

    def context(self) -> ApplicationContext:
        return ApplicationContext(
            operation_type=self.operation,
            sub_operation_type=self.sub_operation,
            material=self.material,
            params=self.params,
        )

    def to_request(
        self,
        content: str | None = None,
        input_kind: InputKind | None = None,
        mime_type: str | None = None,
    ) -> SearchRequest:
        """Build the request; omitted input falls back to the pre-populated one."""
        if self.step is not WizardStep.INPUT:
            raise InvalidTransition(f"cannot submit from step {self.step.value}")
        if content is None:
            content, input_kind, mime_type = self.content, self.input_kind, self.mime_type
        if not content or input_kind is None:
            raise InvalidTransition("no input to submit")
        return SearchRequest(
            content=content,
            input_kind=input_kind,
            target_brand=self.brand,
            context=self.context(),
            mime_type=mime_type,
        )


def advance(state: WizardState, event: WizardEvent) -> WizardState:
    if isinstance(event, SelectBrand):
        _require_step(state, event, WizardStep.BRAND)
        return replace(state, brand=event.brand, step=WizardStep.MATERIAL)

    if isinstance(event, SelectMaterial):
        _require_step(state, event, WizardStep.MATERIAL)
        return replace(state, material=event.material, step=WizardStep.APPLICATION)

    if isinstance(event, SelectOperation):
        _require_step(state, event, WizardStep.APPLICATION)
        if event.operation is state.operation:
            return state
        return replace(
            state,
            operation=event.operation,
            sub_operation=None,
            params=OperationParams(),
        )

    if isinstance(event, SelectSubOperation):
        _require_step(state, event, WizardStep.APPLICATION)
        if state.operation is None:
            raise InvalidTransition("select an operation first")
        if operation_for(event.sub_operation) is not state.operation:
            raise InvalidTransition(
                f"{event.sub_operation.value!r} is not a {state.operation.value} sub-operation"
            )
        return replace(state, sub_operation=event.sub_operation)

    if isinstance(event, SetParam):
        _require_step(state, event, WizardStep.APPLICATION)
        return replace(state, params=_with_param(state.params, event.name, event.value))

    if isinstance(event, Continue):
        return _continue(state)

    if isinstance(event, Back):
        index = _ORDER.index(state.step)
        return replace(state, step=_ORDER[max(0, index - 1)])

    raise InvalidTransition(f"unknown event: {event!r}")


def _continue(state: WizardState) -> WizardState:
    if state.step is WizardStep.MATERIAL and state.material is None:
        raise InvalidTransition("select a material first")
    if state.step is WizardStep.APPLICATION and (
        state.operation is None or state.sub_operation is None
    ):
        raise InvalidTransition("select an operation and sub-operation first")
    if state.step is WizardStep.INPUT:
        return state
    return replace(state, step=_ORDER[_ORDER.index(state.step) + 1])


def _require_step(state: WizardState, event: WizardEvent, step: WizardStep) -> None:
    if state.step is not step:
        raise InvalidTransition(
            f"{type(event).__name__} is only valid on step {step.value}, not {state.step.value}"
        )


def _with_param(params: OperationParams, name: str, value: str) -> OperationParams:
    field_info = OperationParams.model_fields.get(name)
    key = field_info.alias if field_info is not None and field_info.alias else name
    data = params.to_wire()
    data[key] = value
    try:
        return OperationParams.model_validate(data)
    except ValidationError as exc:
        raise InvalidTransition(f"invalid value for {name!r}: {value!r}") from exc
