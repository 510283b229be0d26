"""
Algorithm constants for Deployment Assessor.

These are domain-specific values that rarely change.
Separate from config.py which contains runtime/tunable parameters.

The pretraining multiplier and the throughput base are calibration
parameters, not derived physics. Validate them against measurements
before trusting absolute numbers.
"""

# === Memory Model (GB per billion parameters, FP16 baseline) ===
FP16_BYTES_PER_PARAM = 2
INFERENCE_OVERHEAD_FACTOR = 1.7      # weights + serving overhead
FULL_FINETUNE_STATE_FACTOR = 4       # weights + gradients + optimizer state
PRETRAINING_GB_PER_BILLION = 80 / 3  # large-batch activation memory
LORA_OVER_INFERENCE_FACTOR = 1.2
QLORA_BYTES_PER_PARAM = 0.5          # 4-bit base weights
QLORA_ADAPTER_FACTOR = 1.5

# === Throughput Model ===
THROUGHPUT_BASE = 1000               # tokens/s per accelerator for a 1B model
UTILIZATION_PENALTY = 0.5
MIN_UTILIZATION_FACTOR = 0.3
# Modeling assumption, not a measured constant.
MEAN_TOKENS_PER_RESPONSE = 100

# === Quantization Variants (relative to FP16) ===
QUANTIZATION_FACTORS = {
    "FP16": {"memory": 1.0, "throughput": 1.0},
    "INT8": {"memory": 0.5, "throughput": 1.6},
    "INT4": {"memory": 0.25, "throughput": 2.2},
}

# === Feasibility Score Bands (usage percent) ===
SCORE_FULL_UNTIL = 60
SCORE_STEEP_FROM = 90
SCORE_LINEAR_SLOPE = 1.0
SCORE_STEEP_SLOPE = 4.0

# === Dimension Weights ===
TECHNICAL_WEIGHTS = {
    "model_task_alignment": 0.20,
    "llm_necessity": 0.15,
    "fine_tuning": 0.15,
    "implementation_roadmap": 0.15,
    "performance_requirements": 0.10,
    "cost_efficiency": 0.10,
    "hardware_feasibility": 0.15,
}

BUSINESS_WEIGHTS = {
    "problem_scenario_focus": 0.15,
    "technical_barrier": 0.15,
    "data_support_potential": 0.20,
    "ai_talent_reserve": 0.20,
    "roi_feasibility": 0.15,
    "market_competitiveness": 0.15,
}

# === Sampling ===
INTENT_TEMPERATURE = 0.1
