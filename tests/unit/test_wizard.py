import pytest

from equitool.catalog.enums import Brand, InputKind, Material, Operation, SubOperation
from equitool.session.wizard import (
    Back,
    Continue,
    InvalidTransition,
    SelectBrand,
    SelectMaterial,
    SelectOperation,
    SelectSubOperation,
    SetParam,
    WizardState,
    WizardStep,
    advance,
)


def _run(*events) -> WizardState:
    state = WizardState()
    for event in events:
        state = advance(state, event)
    return state


def _at_application() -> WizardState:
    return _run(SelectBrand(Brand.TOOLFLO), SelectMaterial(Material.S))


def test_happy_path_builds_request() -> None:
    state = _run(
        SelectBrand(Brand.TOOLFLO),
        SelectMaterial(Material.S),
        SelectOperation(Operation.GROOVING),
        SelectSubOperation(SubOperation.PARTING),
        SetParam("parting_diameter", "40"),
        SetParam("Insert Width", "3mm"),
        Continue(),
    )

    request = state.to_request("GFN 3", InputKind.TEXT)

    assert state.step is WizardStep.INPUT
    assert request.target_brand is Brand.TOOLFLO
    assert request.context.material is Material.S
    assert request.context.sub_operation_type is SubOperation.PARTING
    assert request.context.params.parting_diameter == "40"
    assert request.context.params.extras() == {"Insert Width": "3mm"}


def test_advance_does_not_mutate_state() -> None:
    state = WizardState()

    advanced = advance(state, SelectBrand(Brand.NTK))

    assert state.step is WizardStep.BRAND
    assert state.brand is Brand.TUNGALOY
    assert advanced.brand is Brand.NTK


def test_changing_operation_clears_sub_operation_and_params() -> None:
    state = advance(_at_application(), SelectOperation(Operation.TURNING))
    state = advance(state, SelectSubOperation(SubOperation.EXTERNAL_TURNING))
    state = advance(state, SetParam("vc", "180"))

    same = advance(state, SelectOperation(Operation.TURNING))
    changed = advance(state, SelectOperation(Operation.MILLING))

    assert same is state
    assert changed.sub_operation is None
    assert changed.params.vc is None


def test_sub_operation_must_match_operation() -> None:
    state = advance(_at_application(), SelectOperation(Operation.MILLING))

    with pytest.raises(InvalidTransition):
        advance(state, SelectSubOperation(SubOperation.PARTING))

    with pytest.raises(InvalidTransition):
        advance(_at_application(), SelectSubOperation(SubOperation.PARTING))


def test_continue_requires_selections() -> None:
    with pytest.raises(InvalidTransition):
        advance(_run(SelectBrand(Brand.MORSE), Back(), Continue()), Continue())

    with pytest.raises(InvalidTransition):
        advance(_at_application(), Continue())


def test_events_are_bound_to_their_step() -> None:
    with pytest.raises(InvalidTransition):
        advance(WizardState(), SelectMaterial(Material.P))


def test_back_stops_at_first_step() -> None:
    state = _run(SelectBrand(Brand.NTK), Back(), Back())

    assert state.step is WizardStep.BRAND
    assert state.brand is Brand.NTK


def test_cannot_submit_before_input_step() -> None:
    with pytest.raises(InvalidTransition):
        _at_application().to_request("CNMG", InputKind.TEXT)


def test_edit_prepopulates_previous_request() -> None:
    original = _run(
        SelectBrand(Brand.TOOLFLO),
        SelectMaterial(Material.S),
        SelectOperation(Operation.GROOVING),
        SelectSubOperation(SubOperation.PARTING),
        SetParam("overhang", "12"),
        Continue(),
    ).to_request("aGVsbG8=", InputKind.IMAGE, "image/png")

    restored = WizardState.from_request(original)

    assert restored.step is WizardStep.INPUT
    assert restored.to_request() == original
    assert restored.to_request("GFN 3", InputKind.TEXT).content == "GFN 3"


def test_invalid_param_value_is_an_invalid_transition() -> None:
    state = advance(_at_application(), SelectOperation(Operation.TURNING))

    with pytest.raises(InvalidTransition):
        advance(state, SetParam("coolant", "Foo"))

    assert advance(state, SetParam("coolant", "MQL")).params.coolant.value == "MQL"
