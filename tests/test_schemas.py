import pytest
from pydantic import ValidationError

from core.constants import BUSINESS_WEIGHTS, TECHNICAL_WEIGHTS
from schemas.base import VerdictBase, combine_weighted
from schemas.business import DEFAULT_DISCLAIMER, BusinessVerdict
from schemas.technical import TechnicalVerdict


def _expected(scores, weights):
    present = {k: w for k, w in weights.items() if scores.get(k) is not None}
    return sum(scores[k] * w for k, w in present.items()) / sum(present.values())


def test_technical_weighted_score_identity(technical_payload):
    verdict = TechnicalVerdict.model_validate(technical_payload).model_copy(update={"hardware_score": 85})
    scores = verdict.dimension_scores()

    assert set(scores) == set(TECHNICAL_WEIGHTS)
    assert scores["hardware_feasibility"] == 85
    assert abs(verdict.weighted_score() - _expected(scores, TECHNICAL_WEIGHTS)) <= 0.5 + 1e-9


def test_technical_score_renormalizes_without_hardware(technical_payload):
    verdict = TechnicalVerdict.model_validate(technical_payload)
    # (90*.2 + 80*.15 + 70*.15 + 80*.15 + 60*.1 + 50*.1) / .85
    assert verdict.weighted_score() == 75


def test_business_weighted_score_identity(business_payload):
    verdict = BusinessVerdict.model_validate(business_payload)
    # 90*.15 + 60*.15 + 80*.2 + 50*.2 + 70*.15 + 40*.15
    assert verdict.weighted_score() == 65
    assert abs(verdict.weighted_score() - _expected(verdict.dimension_scores(), BUSINESS_WEIGHTS)) <= 0.5


def test_weights_sum_to_one():
    assert sum(TECHNICAL_WEIGHTS.values()) == pytest.approx(1.0)
    assert sum(BUSINESS_WEIGHTS.values()) == pytest.approx(1.0)


@pytest.mark.parametrize("scores", [
    {"a": 0, "b": 0},
    {"a": 100, "b": 100},
    {"a": 13, "b": 77},
    {"a": 42, "b": None},
])
def test_combine_weighted_stays_in_range(scores):
    result = combine_weighted(scores, {"a": 0.3, "b": 0.7})
    assert 0 <= result <= 100


def test_combine_weighted_all_missing_is_zero():
    assert combine_weighted({"a": None}, {"a": 1.0}) == 0


def test_enum_fields_are_normalized(technical_payload):
    technical_payload["dimensions"]["modelTaskAlignment"]["status"] = " Matched "
    technical_payload["dimensions"]["costEfficiency"]["level"] = "HIGH"
    verdict = TechnicalVerdict.model_validate(technical_payload)
    assert verdict.dimensions.model_task_alignment.status == "matched"
    assert verdict.dimensions.cost_efficiency.level == "high"


def test_unknown_enum_value_rejected(technical_payload):
    technical_payload["dimensions"]["modelTaskAlignment"]["status"] = "kind of"
    with pytest.raises(ValidationError):
        TechnicalVerdict.model_validate(technical_payload)


def test_missing_dimension_rejected(business_payload):
    del business_payload["dimensions"]["roiFeasibility"]
    with pytest.raises(ValidationError):
        BusinessVerdict.model_validate(business_payload)


def test_missing_dimension_score_rejected(technical_payload):
    del technical_payload["dimensions"]["llmNecessity"]["score"]
    with pytest.raises(ValidationError):
        TechnicalVerdict.model_validate(technical_payload)


def test_null_analysis_becomes_empty(business_payload):
    business_payload["dimensions"]["technicalBarrier"]["analysis"] = None
    verdict = BusinessVerdict.model_validate(business_payload)
    assert verdict.dimensions.technical_barrier.analysis == ""


def test_disclaimer_defaults(business_payload):
    del business_payload["disclaimer"]
    assert BusinessVerdict.model_validate(business_payload).disclaimer == DEFAULT_DISCLAIMER


def test_serializes_camel_case(technical_payload):
    dumped = TechnicalVerdict.model_validate(technical_payload).model_dump(by_alias=True)
    assert "criticalIssues" in dumped
    assert "modelTaskAlignment" in dumped["dimensions"]


def test_verdict_base_requires_dimension_scores():
    with pytest.raises(TypeError):
        VerdictBase()
    assert "dimension_scores" in VerdictBase.__abstractmethods__
