#!/usr/bin/env python3
"""
Capacity planning calculator.

Turns (model, accelerator, accelerator count, target tokens/sec) into memory
feasibility for pretraining, fine-tuning and inference, plus an achievable
throughput estimate per quantization level.

Pure and deterministic: no I/O, no clocks, no randomness. Identical input
always produces identical output.
"""

import math
from typing import List, Optional

from core import constants
from core.errors import CapacityValidationError
from core.reference_data import ReferenceCatalog, default_catalog
from core.types.enums import QuantizationType
from core.types.models import (
    FineTuningFeasibility,
    InferenceFeasibility,
    QuantizationVariant,
    RegimeFeasibility,
    ResourceFeasibility,
)
from core.utils import get_logger

logger = get_logger("CapacityModel")


# === Memory formulas (GB) ===

def inference_memory_gb(params_b: float) -> float:
    return params_b * constants.FP16_BYTES_PER_PARAM * constants.INFERENCE_OVERHEAD_FACTOR


def full_finetune_memory_gb(params_b: float) -> float:
    return params_b * constants.FP16_BYTES_PER_PARAM * constants.FULL_FINETUNE_STATE_FACTOR


def pretraining_memory_gb(params_b: float) -> float:
    return params_b * constants.PRETRAINING_GB_PER_BILLION


def lora_memory_gb(params_b: float) -> float:
    return inference_memory_gb(params_b) * constants.LORA_OVER_INFERENCE_FACTOR


def qlora_memory_gb(params_b: float) -> float:
    return params_b * constants.QLORA_BYTES_PER_PARAM * constants.QLORA_ADAPTER_FACTOR


def memory_usage_percent(required_gb: float, available_gb: float) -> int:
    """
    Ceiling of required/available as a percentage.

    Rounded to 6 places first so float noise (28.000000000000004) does not
    push the ceiling up a whole point.
    """
    return math.ceil(round(required_gb / available_gb * 100, 6))


def feasibility_score(usage_percent: float) -> int:
    """
    Non-linear 0-100 score for a memory usage percentage.

    Full marks up to 60%, one point per percent lost from 60% to 90%,
    four points per percent from 90% to 100%, zero beyond 100%.
    """
    if usage_percent > 100:
        return 0
    if usage_percent <= constants.SCORE_FULL_UNTIL:
        return 100
    if usage_percent <= constants.SCORE_STEEP_FROM:
        penalty = (usage_percent - constants.SCORE_FULL_UNTIL) * constants.SCORE_LINEAR_SLOPE
        return int(round(100 - penalty))
    at_steep = 100 - (constants.SCORE_STEEP_FROM - constants.SCORE_FULL_UNTIL) * constants.SCORE_LINEAR_SLOPE
    penalty = (usage_percent - constants.SCORE_STEEP_FROM) * constants.SCORE_STEEP_SLOPE
    return max(0, int(round(at_steep - penalty)))


# === Throughput model ===

def base_tokens_per_second(params_b: float, accelerator_count: int) -> float:
    return accelerator_count * (constants.THROUGHPUT_BASE / math.sqrt(params_b))


def effective_tokens_per_second(base_tps: float, inference_usage_percent: float) -> float:
    """Shrink throughput as memory pressure rises, never below 30% of base."""
    utilization = 1 - constants.UTILIZATION_PENALTY * (inference_usage_percent / 100)
    return base_tps * max(constants.MIN_UTILIZATION_FACTOR, utilization)


def request_rate(tokens_per_second: float) -> float:
    """Requests/sec assuming MEAN_TOKENS_PER_RESPONSE tokens per response."""
    return tokens_per_second / constants.MEAN_TOKENS_PER_RESPONSE


class CapacityModel:
    """
    Deterministic capacity calculator over an injected reference catalog.
    """

    def __init__(self, catalog: Optional[ReferenceCatalog] = None):
        self.catalog = catalog or default_catalog()

    def assess(
        self,
        model_id: str,
        accelerator_id: str,
        accelerator_count: int,
        target_tokens_per_second: int,
    ) -> Optional[ResourceFeasibility]:
        """
        Compute resource feasibility for one plan.

        Returns None when the model or accelerator has no reference profile.

        Raises:
            CapacityValidationError: accelerator_count or target is not positive.
        """
        if accelerator_count is None or accelerator_count <= 0:
            raise CapacityValidationError(f"accelerator_count must be positive, got {accelerator_count}")
        if target_tokens_per_second is None or target_tokens_per_second <= 0:
            raise CapacityValidationError(
                f"target_tokens_per_second must be positive, got {target_tokens_per_second}"
            )

        model = self.catalog.model(model_id)
        accelerator = self.catalog.accelerator(accelerator_id)
        if model is None or accelerator is None:
            logger.warning(
                f"Insufficient reference data for model={model_id!r} accelerator={accelerator_id!r}"
            )
            return None

        params_b = model.parameter_count_b
        available = accelerator.vram_gb * accelerator_count

        pretraining = self._pretraining(pretraining_memory_gb(params_b), available)
        fine_tuning = self._fine_tuning(params_b, available)
        inference = self._inference(params_b, available, accelerator_count, target_tokens_per_second)

        return ResourceFeasibility(
            pretraining=pretraining,
            fine_tuning=fine_tuning,
            inference=inference,
            hardware_score=feasibility_score(inference.memory_usage_percent),
        )

    def _pretraining(self, required: float, available: float) -> RegimeFeasibility:
        usage = memory_usage_percent(required, available)
        feasible = usage <= 100
        if feasible:
            suggestions = ["Memory is sufficient for pretraining at this scale"]
        else:
            suggestions = [
                f"Pretraining needs about {required:.0f}GB; add accelerators or choose a smaller model"
            ]
        return RegimeFeasibility(
            feasible=feasible,
            memory_usage_percent=usage,
            memory_required_gb=round(required, 2),
            memory_available_gb=round(available, 2),
            suggestions=suggestions,
        )

    def _fine_tuning(self, params_b: float, available: float) -> FineTuningFeasibility:
        required = full_finetune_memory_gb(params_b)
        usage = memory_usage_percent(required, available)
        feasible = usage <= 100
        lora_ok = memory_usage_percent(lora_memory_gb(params_b), available) <= 100
        qlora_ok = memory_usage_percent(qlora_memory_gb(params_b), available) <= 100

        if feasible:
            suggestions = ["Hardware supports full-parameter fine-tuning"]
        elif lora_ok:
            suggestions = ["Use LoRA for parameter-efficient fine-tuning"]
        elif qlora_ok:
            suggestions = ["Use QLoRA (4-bit base weights) for fine-tuning"]
        else:
            suggestions = ["Fine-tuning is not possible on this hardware; add accelerators or choose a smaller model"]

        return FineTuningFeasibility(
            feasible=feasible,
            memory_usage_percent=usage,
            memory_required_gb=round(required, 2),
            memory_available_gb=round(available, 2),
            lora_feasible=lora_ok,
            qlora_feasible=qlora_ok,
            suggestions=suggestions,
        )

    def _inference(
        self,
        params_b: float,
        available: float,
        accelerator_count: int,
        target_tps: int,
    ) -> InferenceFeasibility:
        required = inference_memory_gb(params_b)
        usage = memory_usage_percent(required, available)
        effective = effective_tokens_per_second(base_tokens_per_second(params_b, accelerator_count), usage)

        variants: List[QuantizationVariant] = []
        for qtype in QuantizationType:
            factors = constants.QUANTIZATION_FACTORS[qtype.value]
            variant_tps = effective * factors["throughput"]
            variants.append(QuantizationVariant(
                type=qtype,
                memory_usage_percent=memory_usage_percent(required * factors["memory"], available),
                supported_request_rate=round(request_rate(variant_tps), 2),
                requirement_met=variant_tps >= target_tps,
            ))

        requirement_met = effective >= target_tps
        feasible = usage <= 100
        suggestions: List[str] = []
        if not feasible:
            fitting = next((v for v in variants if v.memory_usage_percent <= 100), None)
            if fitting is not None:
                suggestions.append(f"FP16 weights do not fit; {fitting.type.value} quantization fits in memory")
            else:
                suggestions.append("Model does not fit even at INT4; add accelerators")
        if requirement_met:
            suggestions.append("Current configuration meets the throughput target")
        else:
            meeting = next((v for v in variants if v.requirement_met), None)
            if meeting is not None:
                suggestions.append(f"Use {meeting.type.value} quantization to meet the throughput target")
            else:
                suggestions.append("Throughput target is out of reach even with quantization; add accelerators")

        return InferenceFeasibility(
            feasible=feasible,
            memory_usage_percent=usage,
            memory_required_gb=round(required, 2),
            memory_available_gb=round(available, 2),
            supported_throughput=int(round(effective)),
            supported_request_rate=round(request_rate(effective), 2),
            requirement_met=requirement_met,
            quantization_options=variants,
            suggestions=suggestions,
        )


_default_model: Optional[CapacityModel] = None


def calculate_resource_feasibility(
    model_id: str,
    accelerator_id: str,
    accelerator_count: int,
    target_tokens_per_second: int,
) -> Optional[ResourceFeasibility]:
    """Assess a plan against the built-in reference catalog."""
    global _default_model
    if _default_model is None:
        _default_model = CapacityModel(default_catalog())
    return _default_model.assess(model_id, accelerator_id, accelerator_count, target_tokens_per_second)
