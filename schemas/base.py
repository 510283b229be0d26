"""
Shared base for evaluator verdict schemas.

Each verdict declares its dimension weights; the top-level score is always
recomputed from the dimension sub-scores rather than trusted from the model.
"""

from abc import abstractmethod
from typing import Any, ClassVar, Dict, List, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SchemaModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class Dimension(SchemaModel):
    """One scored evaluation dimension."""
    score: float = Field(ge=0, le=100, description="Dimension score 0-100")
    analysis: str = Field(default="", description="Qualitative analysis, 2-4 sentences")
    score_rationale: str = Field(default="", description="Why this score was given")

    @field_validator("analysis", "score_rationale", mode="before")
    @classmethod
    def coerce_none_to_empty(cls, value: Any) -> str:
        """Coerce None to empty string for robustness with chat models."""
        if value is None:
            return ""
        return str(value)


def lower_enum(value: Any) -> Any:
    """Normalize enumerated status strings ("Matched " -> "matched")."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


Lowered = BeforeValidator(lower_enum)


def combine_weighted(scores: Mapping[str, Optional[float]], weights: Mapping[str, float]) -> int:
    """
    Weighted combination of dimension scores.

    Dimensions whose score is None are dropped and the remaining weights
    renormalized, so the result stays on the 0-100 scale.
    """
    present = {name: w for name, w in weights.items() if scores.get(name) is not None}
    total_weight = sum(present.values())
    if total_weight <= 0:
        return 0
    weighted = sum(float(scores[name]) * w for name, w in present.items())
    return int(round(weighted / total_weight))


class VerdictBase(SchemaModel):
    """Common shape: weighted score plus a summary written last."""
    DIMENSION_WEIGHTS: ClassVar[Dict[str, float]] = {}

    score: float = Field(default=0, ge=0, le=100)
    summary: Optional[str] = None
    recommendations: List[str] = Field(default_factory=list)

    @abstractmethod
    def dimension_scores(self) -> Dict[str, Optional[float]]:
        """Dimension name to score; None drops that weight from the combination."""

    def weighted_score(self) -> int:
        return combine_weighted(self.dimension_scores(), self.DIMENSION_WEIGHTS)
