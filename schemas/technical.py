"""
Technical-soundness verdict schema.

Six dimensions are scored by the remote model; the seventh weighted input,
hardware feasibility, comes from the capacity calculator and is injected
after parsing so the model never re-derives memory facts.
"""

from typing import Annotated, ClassVar, Dict, List, Literal, Optional

from pydantic import Field

from core.constants import TECHNICAL_WEIGHTS
from schemas.base import Dimension, Lowered, SchemaModel, VerdictBase


class ModelTaskAlignment(Dimension):
    status: Annotated[Literal["matched", "mismatched", "partial"], Lowered]


class LlmNecessity(Dimension):
    status: Annotated[Literal["necessary", "unnecessary", "debatable"], Lowered]
    alternatives: Optional[str] = None


class FineTuningAssessment(Dimension):
    necessary: bool
    data_adequacy: Annotated[Literal["sufficient", "marginal", "insufficient"], Lowered]


class RoadmapPhases(SchemaModel):
    short_term: List[str] = Field(default_factory=list)
    mid_term: List[str] = Field(default_factory=list)
    not_recommended: List[str] = Field(default_factory=list)


class ImplementationRoadmap(Dimension):
    feasible: bool
    phases: RoadmapPhases = Field(default_factory=RoadmapPhases)


class PerformanceRequirements(Dimension):
    reasonable: bool


class CostEfficiency(Dimension):
    level: Annotated[Literal["reasonable", "high", "excessive"], Lowered]


class DomainConsiderations(SchemaModel):
    """Unscored notes for regulated domains (medical, finance, legal)."""
    applicable: bool = False
    analysis: str = ""


class TechnicalDimensions(SchemaModel):
    model_task_alignment: ModelTaskAlignment
    llm_necessity: LlmNecessity
    fine_tuning: FineTuningAssessment
    implementation_roadmap: ImplementationRoadmap
    performance_requirements: PerformanceRequirements
    cost_efficiency: CostEfficiency
    domain_considerations: Optional[DomainConsiderations] = None


class TechnicalVerdict(VerdictBase):
    """Verdict of the technical-soundness evaluator."""
    DIMENSION_WEIGHTS: ClassVar[Dict[str, float]] = TECHNICAL_WEIGHTS

    dimensions: TechnicalDimensions
    hardware_score: Optional[int] = Field(default=None, ge=0, le=100)
    critical_issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def dimension_scores(self) -> Dict[str, Optional[float]]:
        d = self.dimensions
        return {
            "model_task_alignment": d.model_task_alignment.score,
            "llm_necessity": d.llm_necessity.score,
            "fine_tuning": d.fine_tuning.score,
            "implementation_roadmap": d.implementation_roadmap.score,
            "performance_requirements": d.performance_requirements.score,
            "cost_efficiency": d.cost_efficiency.score,
            "hardware_feasibility": self.hardware_score,
        }
