"""
Business-value verdict schema.

Six weighted dimensions. Numbers such as ROI or savings percentages are
never part of the schema; analysis stays qualitative.
"""

from typing import Annotated, ClassVar, Dict, List, Literal, Optional

from pydantic import Field

from core.constants import BUSINESS_WEIGHTS
from schemas.base import Dimension, Lowered, SchemaModel, VerdictBase

DEFAULT_DISCLAIMER = (
    "This assessment is a decision-support aid based on the information provided "
    "and does not constitute investment advice."
)

Level = Annotated[Literal["high", "medium", "low"], Lowered]
Strength = Annotated[Literal["strong", "moderate", "weak"], Lowered]


class ProblemScenarioFocus(Dimension):
    pain_point_clarity: Annotated[Literal["clear", "moderate", "unclear"], Lowered]
    ai_necessity: Annotated[Literal["essential", "helpful", "unnecessary"], Lowered]


class TechnicalBarrier(Dimension):
    differentiation_level: Level
    competitive_advantages: List[str] = Field(default_factory=list)


class DataSupportPotential(Dimension):
    data_completeness: float = Field(ge=0, le=100)
    data_accuracy: float = Field(ge=0, le=100)
    data_timeliness: float = Field(ge=0, le=100)
    flywheel_potential: Strength


class AiTalentReserve(Dimension):
    talent_level: Strength
    capability_gaps: List[str] = Field(default_factory=list)
    development_suggestions: List[str] = Field(default_factory=list)


class RoiFeasibility(Dimension):
    investment_level: Level
    return_path: List[str] = Field(default_factory=list)


class MarketCompetitiveness(Dimension):
    market_timing: Annotated[Literal["optimal", "acceptable", "poor"], Lowered]
    competitive_position: Annotated[Literal["leading", "following", "lagging"], Lowered]


class BusinessDimensions(SchemaModel):
    problem_scenario_focus: ProblemScenarioFocus
    technical_barrier: TechnicalBarrier
    data_support_potential: DataSupportPotential
    ai_talent_reserve: AiTalentReserve
    roi_feasibility: RoiFeasibility
    market_competitiveness: MarketCompetitiveness


class BusinessVerdict(VerdictBase):
    """Verdict of the business-value evaluator."""
    DIMENSION_WEIGHTS: ClassVar[Dict[str, float]] = BUSINESS_WEIGHTS

    dimensions: BusinessDimensions
    disclaimer: str = DEFAULT_DISCLAIMER
    opportunities: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)

    def dimension_scores(self) -> Dict[str, Optional[float]]:
        d = self.dimensions
        return {
            "problem_scenario_focus": d.problem_scenario_focus.score,
            "technical_barrier": d.technical_barrier.score,
            "data_support_potential": d.data_support_potential.score,
            "ai_talent_reserve": d.ai_talent_reserve.score,
            "roi_feasibility": d.roi_feasibility.score,
            "market_competitiveness": d.market_competitiveness.score,
        }
