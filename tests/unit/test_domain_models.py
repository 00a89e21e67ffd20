import pytest
from pydantic import ValidationError

from equitool.catalog.enums import (
    OPERATION_MAP,
    Brand,
    InputKind,
    Operation,
    ReplacementStrategy,
    SubOperation,
    operation_for,
    sub_operations,
)
from equitool.catalog.knowledge import brand_knowledge
from equitool.catalog.models import ApplicationContext, EquivalencyResult, SearchRequest

from conftest import make_answer


def test_sub_operation_must_belong_to_operation() -> None:
    with pytest.raises(ValidationError):
        ApplicationContext(operation_type=Operation.MILLING, sub_operation_type=SubOperation.PARTING)

    with pytest.raises(ValidationError):
        ApplicationContext(sub_operation_type=SubOperation.U_DRILL)

    context = ApplicationContext(
        operationType="Grooving", subOperationType="Parting", material="S (Superalloys)"
    )
    assert context.sub_operation_type is SubOperation.PARTING


def test_every_sub_operation_has_exactly_one_family() -> None:
    listed = [sub for subs in OPERATION_MAP.values() for sub in subs]

    assert sorted(listed) == sorted(SubOperation)
    assert operation_for(SubOperation.GUN_DRILL) is Operation.HOLEMAKING
    assert sub_operations(Operation.GROOVING) == (
        SubOperation.EXTERNAL_GROOVING,
        SubOperation.INTERNAL_GROOVING,
        SubOperation.PARTING,
    )


def test_search_request_is_immutable_and_wire_named() -> None:
    request = SearchRequest(content="CNMG 120408", inputKind="text", targetBrand="Tungaloy")

    with pytest.raises(ValidationError):
        request.content = "other"  # type: ignore[misc]

    wire = request.to_wire()
    assert wire["inputKind"] == "text"
    assert wire["targetBrand"] == "Tungaloy"
    assert request.media_type is None


def test_search_request_rejects_empty_content() -> None:
    with pytest.raises(ValidationError):
        SearchRequest(content="", input_kind=InputKind.TEXT, target_brand=Brand.NTK)


@pytest.mark.parametrize("score", [1, 35, 99, 100])
def test_nonzero_confidence_is_never_denied(score: int) -> None:
    result = EquivalencyResult.model_validate(make_answer(confidenceScore=score))

    assert not result.is_denied


def test_zero_confidence_is_denied() -> None:
    result = EquivalencyResult.model_validate(make_answer(confidenceScore=0))

    assert result.is_denied


def test_confidence_is_coerced_into_range() -> None:
    assert EquivalencyResult.model_validate(make_answer(confidenceScore=140)).confidence_score == 100
    assert EquivalencyResult.model_validate(make_answer(confidenceScore="87%")).confidence_score == 87
    assert EquivalencyResult.model_validate(make_answer(confidenceScore=64.6)).confidence_score == 65


def test_missing_params_mark_result_provisional() -> None:
    result = EquivalencyResult.model_validate(
        make_answer(missingParams=["Insert Width", " "], alternatives=None)
    )

    assert result.needs_refinement
    assert result.missing_params == ["Insert Width"]
    assert result.alternatives == []


def test_replacement_strategy_is_normalized() -> None:
    result = EquivalencyResult.model_validate(make_answer(replacementStrategy="full assembly"))
    unknown = EquivalencyResult.model_validate(make_answer(replacementStrategy="maybe"))

    assert result.replacement_strategy is ReplacementStrategy.FULL_ASSEMBLY
    assert unknown.replacement_strategy is None


def test_brand_knowledge_defaults_to_empty_string() -> None:
    assert "PremiumTec" in brand_knowledge(Brand.TUNGALOY)
    assert brand_knowledge(Brand.MORSE) == ""
    assert brand_knowledge("Unknown Brand") == ""
