"""
Static reference data for models and accelerators.

Profiles are loaded once and never mutated. The catalog is passed into the
capacity model rather than read from module state, so tests can supply
synthetic profiles.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from core.types.enums import Architecture, Modality
from core.types.models import AcceleratorProfile, ModelProfile


def _model(name, params_b, arch="dense", modality="text", context="", open_source=False):
    return ModelProfile(
        name=name,
        parameter_count_b=params_b,
        architecture=Architecture(arch),
        modality=Modality(modality),
        context_window=context,
        open_source=open_source,
    )


DEFAULT_MODELS = [
    _model("DeepSeek-V3.2-Exp", 685, "moe", context="128K", open_source=True),
    _model("DeepSeek-R1-0528", 685, "moe", context="128K", open_source=True),
    _model("ERNIE-4.5-VL-424B-A47B", 424, "moe", "multimodal", "128K", True),
    _model("ERNIE-4.5-300B-A47B", 300, "moe", context="128K", open_source=True),
    _model("ERNIE-4.5-VL-28B-A3B", 28, "moe", "multimodal", "128K", True),
    _model("ERNIE-4.5-21B-A3B", 21, "moe", context="128K", open_source=True),
    _model("ERNIE-4.5-0.3B", 0.36, context="128K", open_source=True),
    _model("PaddleOCR-VL", 0.9, modality="multimodal", open_source=True),
    _model("GPT-3.5", 175, context="4K"),
    _model("Llama 3 70B", 70, context="8K", open_source=True),
    _model("Llama 3 8B", 8, context="8K", open_source=True),
    _model("Mistral Large", 140, context="32K"),
    _model("Mistral 7B", 7, context="8K", open_source=True),
    _model("Qwen3-235B-A22B", 235, "moe", open_source=True),
    _model("Qwen3-30B-A3B", 30, "moe", open_source=True),
    _model("Qwen3-32B", 32, open_source=True),
    _model("Qwen3-14B", 14, open_source=True),
    _model("Qwen3-8B", 8, open_source=True),
    _model("Qwen3-4B", 4, open_source=True),
    _model("Qwen3-1.7B", 1.7, open_source=True),
    _model("Qwen3-0.6B", 0.6, open_source=True),
    _model("Qwen3-VL-235B-A22B", 235, "moe", "multimodal", open_source=True),
    _model("Qwen3-VL-30B-A3B", 30, "moe", "multimodal", open_source=True),
    _model("Qwen3-VL-32B", 32, modality="multimodal", open_source=True),
    _model("Qwen3-VL-8B", 8, modality="multimodal", open_source=True),
    _model("Qwen3-VL-4B", 4, modality="multimodal", open_source=True),
    _model("Qwen3-VL-2B", 2, modality="multimodal", open_source=True),
]

DEFAULT_ACCELERATORS = [
    AcceleratorProfile(name="NVIDIA H100", vram_gb=80, tflops=989, bandwidth_gbps=3350),
    AcceleratorProfile(name="NVIDIA A100 (80GB)", vram_gb=80, tflops=312, bandwidth_gbps=2039),
    AcceleratorProfile(name="NVIDIA A100 (40GB)", vram_gb=40, tflops=312, bandwidth_gbps=1555),
    AcceleratorProfile(name="NVIDIA V100", vram_gb=32, tflops=125, bandwidth_gbps=900),
    AcceleratorProfile(name="NVIDIA RTX 4090", vram_gb=24, tflops=165, bandwidth_gbps=1008),
    AcceleratorProfile(name="NVIDIA RTX 3090", vram_gb=24, tflops=71, bandwidth_gbps=936),
]


class ReferenceCatalog:
    """Read-only lookup of model and accelerator profiles."""

    def __init__(self, models: Iterable[ModelProfile], accelerators: Iterable[AcceleratorProfile]):
        self._models: Mapping[str, ModelProfile] = MappingProxyType({m.name: m for m in models})
        self._accelerators: Mapping[str, AcceleratorProfile] = MappingProxyType(
            {a.name: a for a in accelerators}
        )

    @property
    def models(self) -> Mapping[str, ModelProfile]:
        return self._models

    @property
    def accelerators(self) -> Mapping[str, AcceleratorProfile]:
        return self._accelerators

    def model(self, model_id: str) -> Optional[ModelProfile]:
        return self._models.get(model_id)

    def accelerator(self, accelerator_id: str) -> Optional[AcceleratorProfile]:
        return self._accelerators.get(accelerator_id)


def default_catalog() -> ReferenceCatalog:
    return ReferenceCatalog(DEFAULT_MODELS, DEFAULT_ACCELERATORS)


def format_parameter_size(size_b: float) -> str:
    if size_b >= 1000:
        return f"{size_b / 1000:.1f}T"
    return f"{size_b:g}B"


def describe_model(model_id: str, profile: Optional[ModelProfile]) -> str:
    """Plain-text profile block handed to the evaluators as context."""
    if profile is None:
        return f"{model_id}:\n- No reference profile available for this model"
    lines: Dict[str, str] = {
        "Parameters": format_parameter_size(profile.parameter_count_b),
        "Architecture": "mixture-of-experts" if profile.architecture == Architecture.MOE else "dense",
        "Modality": "multimodal (text + vision)" if profile.vision_capable else "text only",
        "Context window": profile.context_window or "unknown",
        "Vision capability": "supported" if profile.vision_capable else "not supported",
        "Open source": "yes" if profile.open_source else "no",
    }
    return f"{model_id}:\n" + "\n".join(f"- {k}: {v}" for k, v in lines.items())
