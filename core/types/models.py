"""
Core type models for the assessment pipeline.

Defines the plan request, the static reference profiles, the derived
resource-feasibility records and the persisted evaluation record.
JSON output uses camelCase keys to match the wire shape consumed by clients.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from core.errors import PlanValidationError
from core.types.enums import Architecture, DataQuality, Modality, QuantizationType
from schemas.business import BusinessVerdict
from schemas.technical import TechnicalVerdict


class WireModel(BaseModel):
    """Frozen model serialized with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, protected_namespaces=()
    )


class PlanRequest(WireModel):
    """The operator's deployment plan. Immutable once submitted."""
    model_id: str = Field(min_length=1)
    accelerator_id: str = Field(min_length=1)
    machine_count: int = Field(ge=1)
    accelerators_per_machine: int = Field(ge=1)
    data_description: str = ""
    data_quality: DataQuality = DataQuality.HIGH
    business_scenario: str = ""
    target_tokens_per_second: int = Field(default=50, ge=1)
    target_concurrency: int = Field(default=100, ge=1)

    @property
    def accelerator_count(self) -> int:
        return self.machine_count * self.accelerators_per_machine

    @property
    def quality_label(self) -> str:
        return "curated" if self.data_quality == DataQuality.HIGH else "uncurated"

    def admission_problem(self, min_chars: int) -> Optional[str]:
        """Reason the plan is too thin to evaluate, or None if both free-text fields are long enough."""
        if len(self.business_scenario.strip()) < min_chars or len(self.data_description.strip()) < min_chars:
            return (
                "Business scenario and data description are too short; "
                f"provide at least {min_chars} characters for each."
            )
        return None


class ModelProfile(WireModel):
    """Static reference data for one model."""
    name: str
    parameter_count_b: float = Field(gt=0)
    architecture: Architecture = Architecture.DENSE
    modality: Modality = Modality.TEXT
    context_window: str = ""
    open_source: bool = False

    @property
    def vision_capable(self) -> bool:
        return self.modality == Modality.MULTIMODAL


class AcceleratorProfile(WireModel):
    """Static reference data for one accelerator type."""
    name: str
    vram_gb: float = Field(gt=0)
    tflops: Optional[float] = None
    bandwidth_gbps: Optional[float] = None


class RegimeFeasibility(WireModel):
    """Memory feasibility for one workload regime."""
    feasible: bool
    memory_usage_percent: int
    memory_required_gb: float
    memory_available_gb: float
    suggestions: List[str] = Field(default_factory=list)


class FineTuningFeasibility(RegimeFeasibility):
    lora_feasible: bool
    qlora_feasible: bool


class QuantizationVariant(WireModel):
    type: QuantizationType
    memory_usage_percent: int
    supported_request_rate: float
    requirement_met: bool


class InferenceFeasibility(RegimeFeasibility):
    supported_throughput: int
    supported_request_rate: float
    requirement_met: bool
    quantization_options: List[QuantizationVariant] = Field(default_factory=list)


class ResourceFeasibility(WireModel):
    """Derived per request; never mutated after creation."""
    pretraining: RegimeFeasibility
    fine_tuning: FineTuningFeasibility
    inference: InferenceFeasibility
    hardware_score: int = Field(ge=0, le=100)


def _new_record_id() -> str:
    return f"eval_{uuid.uuid4().hex[:16]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EvaluationRecord(BaseModel):
    """Persisted aggregate of one plan's evaluation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())

    id: str = Field(default_factory=_new_record_id)
    created_at: datetime = Field(default_factory=_utcnow)
    plan: PlanRequest
    resource_feasibility: Optional[ResourceFeasibility] = None
    technical: Optional[TechnicalVerdict] = None
    business: Optional[BusinessVerdict] = None
    archived: bool = False


def parse_plan(data: Mapping[str, Any]) -> PlanRequest:
    """
    Validate raw plan input (camelCase or snake_case keys).

    Raises:
        PlanValidationError: listing every offending field.
    """
    try:
        return PlanRequest.model_validate(dict(data))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise PlanValidationError(f"Invalid plan: {problems}") from e
