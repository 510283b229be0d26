"""
Core type enums for the assessment pipeline.

Defines plan, reference-data and frame enums shared by the calculator,
the evaluators and the orchestrator.
"""

from enum import Enum


class DataQuality(str, Enum):
    """Whether the training data has been curated."""
    HIGH = "high"
    LOW = "low"


class Architecture(str, Enum):
    DENSE = "dense"
    MOE = "moe"


class Modality(str, Enum):
    TEXT = "text"
    MULTIMODAL = "multimodal"


class QuantizationType(str, Enum):
    FP16 = "FP16"
    INT8 = "INT8"
    INT4 = "INT4"


class Stage(str, Enum):
    """Tag carried by every frame on the output channel."""
    REJECTED = "rejected"
    RESOURCE = "resource"
    TECHNICAL = "technical"
    BUSINESS = "business"
    ERROR = "error"
    COMPLETE = "complete"
