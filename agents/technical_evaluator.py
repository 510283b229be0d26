#!/usr/bin/env python3
"""
Technical Evaluator - judges whether a deployment plan is technically sound.

Scores six dimensions through the remote model. Hardware feasibility, the
seventh weighted input, is the capacity model's score and is injected after
parsing; the remote model only sees it as context.
"""

from typing import Optional

from core.config import settings
from core.evaluator import EvaluationContext, EvaluatorProfile, StructuredEvaluator
from core.reference_data import describe_model
from core.retry import ResilientInvoker, RetryOptions
from core.types.models import PlanRequest
from schemas.technical import TechnicalVerdict


INSTRUCTIONS = """You are a senior AI solutions architect who reviews enterprise AI deployment plans.

Assess the plan on these dimensions, each scored 0-100:

1. modelTaskAlignment - does the model's capability match the task (vision tasks need a multimodal model)
2. llmNecessity - is a large model needed at all, or would a small model or a conventional method do
3. fineTuning - is fine-tuning needed, and is the described data sufficient for it
4. implementationRoadmap - is the task within technical limits, and how should it be phased
5. performanceRequirements - are the throughput and concurrency targets coherent for this scenario
6. costEfficiency - is the model choice proportionate in cost
7. domainConsiderations - regulated-domain concerns (medical, finance, legal); unscored, optional

Hardware memory feasibility is computed separately and given to you as a fact.
Do not re-derive memory figures; use the given numbers when you mention them.

Scoring principles:
- Be factual and name problems plainly
- A fatal flaw (e.g. a text-only model for a vision task) scores 0-30
- A broadly sound plan with room to improve scores 60-80
- Only a clearly well-fitted plan scores 85-100
- Recommendations must be concrete and actionable

Output a single JSON object with keys:
score, dimensions {modelTaskAlignment, llmNecessity, fineTuning, implementationRoadmap,
performanceRequirements, costEfficiency, domainConsiderations}, criticalIssues, warnings, recommendations.
Every scored dimension has score, analysis, scoreRationale and its status fields.
Do not write a summary field."""


EXAMPLES = """# Reference cases

## Case 1: fatal flaw - vision task on a text-only model
Input: generate product descriptions from e-commerce photos; model GPT-3.5 (text only);
data: 8,000 product images with human-written descriptions, curated; 20 tokens/s, concurrency 50.
Output:
{
  "score": 15,
  "dimensions": {
    "modelTaskAlignment": {"status": "mismatched", "score": 5,
      "analysis": "The task requires understanding images. GPT-3.5 is a text-only model and cannot accept image input.",
      "scoreRationale": "The model cannot perform the core task."},
    "llmNecessity": {"status": "necessary", "score": 80,
      "analysis": "Turning visual content into fluent text does call for a multimodal large model.",
      "scoreRationale": "A large model is justified, just not this one."},
    "fineTuning": {"necessary": false, "dataAdequacy": "sufficient", "score": 60,
      "analysis": "8,000 image-description pairs would support later fine-tuning of a suitable multimodal model.",
      "scoreRationale": "Data is adequate but the model cannot use it."},
    "implementationRoadmap": {"feasible": false, "score": 10,
      "analysis": "The plan cannot be implemented as specified.",
      "phases": {"shortTerm": ["Switch to a multimodal model and validate on a sample"],
                 "notRecommended": ["Any image task on GPT-3.5"]},
      "scoreRationale": "Blocked by model choice."},
    "performanceRequirements": {"reasonable": true, "score": 70,
      "analysis": "20 tokens/s with concurrency 50 is plausible for batch description generation.",
      "scoreRationale": "Targets are coherent."},
    "costEfficiency": {"level": "excessive", "score": 20,
      "analysis": "Spending on a model that cannot perform the task has no return.",
      "scoreRationale": "Cost buys nothing."}
  },
  "criticalIssues": ["GPT-3.5 cannot process images"],
  "warnings": [],
  "recommendations": ["Use a multimodal model such as Qwen3-VL-8B or ERNIE-4.5-VL-28B-A3B"]
}

## Case 2: over-engineering - OCR with a large language model
Input: read invoice text from scans and extract fields; model ERNIE-4.5-300B-A47B; 2,000 scans, uncurated.
Key judgments: modelTaskAlignment partial (score 40); llmNecessity unnecessary (score 20) with
alternatives "a dedicated OCR model such as PaddleOCR-VL for recognition, a small model for field extraction";
costEfficiency excessive (score 15). Overall score 35.

## Case 3: sound plan - customer service assistant
Input: answer product questions for an online shop; model Qwen3-8B; 50,000 curated QA pairs;
40 tokens/s, concurrency 100.
Output:
{
  "score": 85,
  "dimensions": {
    "modelTaskAlignment": {"status": "matched", "score": 90,
      "analysis": "Product QA is a text task well within an 8B model's ability.",
      "scoreRationale": "Good fit."},
    "llmNecessity": {"status": "necessary", "score": 85,
      "analysis": "Open-ended questions benefit from a generative model over fixed FAQ matching.",
      "scoreRationale": "Justified."},
    "fineTuning": {"necessary": false, "dataAdequacy": "sufficient", "score": 85,
      "analysis": "Start with retrieval over the QA pairs; fine-tune only if answers drift from house style.",
      "scoreRationale": "Data supports both paths."},
    "implementationRoadmap": {"feasible": true, "score": 85,
      "analysis": "Retrieval first, then evaluate whether fine-tuning adds value.",
      "phases": {"shortTerm": ["Retrieval-augmented answers over the QA set"],
                 "midTerm": ["LoRA fine-tuning if answer style needs alignment"]},
      "scoreRationale": "Clear, low-risk path."},
    "performanceRequirements": {"reasonable": true, "score": 80,
      "analysis": "The targets match a mid-sized online shop's peak traffic.",
      "scoreRationale": "Coherent."},
    "costEfficiency": {"level": "reasonable", "score": 85,
      "analysis": "An 8B model serves this load on modest hardware.",
      "scoreRationale": "Proportionate."}
  },
  "criticalIssues": [],
  "warnings": ["Keep a human hand-off for refunds and complaints"],
  "recommendations": ["Build a regression set of real customer questions before launch"]
}

## Case 4: phased delivery - medical triage assistant
Input: symptom intake and medical knowledge QA; model Llama 3 70B; 3,000 curated dialogues.
Key judgments: implementationRoadmap feasible with phases (shortTerm: symptom intake and general
knowledge QA; notRecommended: diagnosis or medication advice); fineTuning marginal data;
domainConsiderations applicable (regulatory liability, clinician review). Overall score 55.

## Case 5: insufficient data - card fraud detection
Input: flag fraudulent card transactions from descriptions; model Llama 3 8B; 800 labeled cases;
200 tokens/s, concurrency 400.
Key judgments: llmNecessity debatable (score 35) with alternatives "gradient-boosted trees on
engineered features, optionally with small-encoder text features"; fineTuning insufficient data
(score 20); performanceRequirements unreasonable (score 30); domainConsiderations applicable
(explainability for regulators). Overall score 40."""


def _describe_capacity(context: EvaluationContext) -> str:
    rf = context.resource_feasibility
    if rf is None:
        return "Hardware feasibility: insufficient reference data; no memory figures available."
    inf = rf.inference
    return "\n".join([
        f"- Hardware feasibility score: {rf.hardware_score}/100",
        f"- Inference memory: {inf.memory_required_gb}GB of {inf.memory_available_gb}GB "
        f"({inf.memory_usage_percent}%), feasible: {inf.feasible}",
        f"- Estimated throughput: {inf.supported_throughput} tokens/s, requirement met: {inf.requirement_met}",
        f"- Full fine-tuning feasible: {rf.fine_tuning.feasible} "
        f"(LoRA: {rf.fine_tuning.lora_feasible}, QLoRA: {rf.fine_tuning.qlora_feasible})",
        f"- Pretraining feasible: {rf.pretraining.feasible}",
    ])


class TechnicalProfile(EvaluatorProfile):
    name = "technical"
    instructions = INSTRUCTIONS
    examples = EXAMPLES
    response_model = TechnicalVerdict

    def __init__(self):
        self.evaluation_retry = RetryOptions(
            max_retries=settings.TECHNICAL_MAX_RETRIES,
            timeout_ms=settings.TECHNICAL_TIMEOUT_MS,
        )
        self.summary_retry = RetryOptions(
            max_retries=settings.SUMMARY_MAX_RETRIES,
            timeout_ms=settings.SUMMARY_TIMEOUT_MS,
        )

    def build_request_block(self, plan: PlanRequest, context: EvaluationContext) -> str:
        return f"""# Evaluate this plan

## Model
{describe_model(plan.model_id, context.model_profile)}

## Hardware
{plan.accelerator_id}, {plan.machine_count} machine(s) x {plan.accelerators_per_machine} = {plan.accelerator_count} accelerators
{_describe_capacity(context)}

## Requirements
Business scenario: {plan.business_scenario}
Training data: {plan.data_description} ({plan.quality_label})
Performance: {plan.target_tokens_per_second} tokens/s, concurrency {plan.target_concurrency}

Follow the reference cases' method and output format. Return only the JSON object."""

    def build_summary_prompt(self, verdict: TechnicalVerdict, plan: PlanRequest, high: bool) -> str:
        d = verdict.dimensions
        lines = [
            f"1. Model-task alignment ({d.model_task_alignment.score}): {d.model_task_alignment.analysis}",
            f"2. LLM necessity ({d.llm_necessity.score}): {d.llm_necessity.analysis}",
            f"3. Fine-tuning ({d.fine_tuning.score}): {d.fine_tuning.analysis}",
            f"4. Implementation roadmap ({d.implementation_roadmap.score}): {d.implementation_roadmap.analysis}",
            f"5. Performance requirements ({d.performance_requirements.score}): {d.performance_requirements.analysis}",
            f"6. Cost efficiency ({d.cost_efficiency.score}): {d.cost_efficiency.analysis}",
        ]
        if verdict.hardware_score is not None:
            lines.append(f"7. Hardware feasibility ({verdict.hardware_score}): computed from memory requirements")

        if high:
            framing = (
                f"This plan scored {verdict.score}/100 and is sound. In 2-3 sentences, state what makes it "
                "fit for purpose, the main strength of the model choice, and the first implementation step."
            )
        else:
            issues = "\n".join(f"- {issue}" for issue in verdict.critical_issues) or "- none listed"
            framing = (
                f"This plan scored {verdict.score}/100 and has serious problems:\n{issues}\n"
                "In 2-3 sentences, name the core problem directly, explain its root cause, "
                "and point to the correct direction."
            )

        return f"""You are a senior AI solutions architect writing the summary of a technical review.

Scenario: {plan.business_scenario}
Model: {plan.model_id}; hardware: {plan.accelerator_id} x {plan.accelerator_count}
Data: {plan.data_description} ({plan.quality_label})

Dimension results:
{chr(10).join(lines)}

{framing}
Never invent numbers that are not in the input. Output the summary text only."""

    def fallback_summary(self, high: bool) -> str:
        if high:
            return "Technical evaluation complete; see the dimension details."
        return "Technical evaluation found issues; see the dimension details."

    def finalize(self, verdict: TechnicalVerdict, context: EvaluationContext) -> TechnicalVerdict:
        rf = context.resource_feasibility
        return verdict.model_copy(update={"hardware_score": rf.hardware_score if rf is not None else None})


def create_technical_evaluator(
    endpoint=None,
    invoker: Optional[ResilientInvoker] = None,
) -> StructuredEvaluator:
    return StructuredEvaluator(TechnicalProfile(), endpoint=endpoint, invoker=invoker)
