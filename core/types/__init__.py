"""Core types package for the assessment pipeline."""

from core.types.enums import (
    Architecture,
    DataQuality,
    Modality,
    QuantizationType,
    Stage,
)
from core.types.models import (
    AcceleratorProfile,
    EvaluationRecord,
    FineTuningFeasibility,
    InferenceFeasibility,
    ModelProfile,
    PlanRequest,
    QuantizationVariant,
    RegimeFeasibility,
    ResourceFeasibility,
    parse_plan,
)

__all__ = [
    "Architecture",
    "DataQuality",
    "Modality",
    "QuantizationType",
    "Stage",
    "AcceleratorProfile",
    "EvaluationRecord",
    "FineTuningFeasibility",
    "InferenceFeasibility",
    "ModelProfile",
    "PlanRequest",
    "QuantizationVariant",
    "RegimeFeasibility",
    "ResourceFeasibility",
    "parse_plan",
]
