#!/usr/bin/env python3
"""
Business Evaluator - judges the business value of a deployment plan.

Six weighted dimensions, analysed qualitatively. The model is told never to
invent figures (ROI percentages, savings, market share) that the operator
did not provide.
"""

from typing import Optional

from core.config import settings
from core.evaluator import EvaluationContext, EvaluatorProfile, StructuredEvaluator
from core.retry import ResilientInvoker, RetryOptions
from core.types.models import PlanRequest
from schemas.business import BusinessVerdict


INSTRUCTIONS = """You are a senior AI business consultant assessing the business value of an enterprise AI plan.

Overall bands: 80-100 strong value, invest; 60-79 has value, proceed with changes;
40-59 doubtful, rethink; 0-39 low value, do not invest.

Dimensions and weights:

1. problemScenarioFocus (15%) - is there a clear pain point, and is AI the right tool for it
   fields: painPointClarity clear|moderate|unclear, aiNecessity essential|helpful|unnecessary
2. technicalBarrier (15%) - does the plan build a defensible technical advantage
   fields: differentiationLevel high|medium|low, competitiveAdvantages [..]
3. dataSupportPotential (20%) - data quality and flywheel potential
   fields: dataCompleteness, dataAccuracy, dataTimeliness (each 0-100), flywheelPotential strong|moderate|weak
4. aiTalentReserve (20%) - can the organisation build and run this
   fields: talentLevel strong|moderate|weak, capabilityGaps [..], developmentSuggestions [..]
5. roiFeasibility (15%) - qualitative investment versus return
   fields: investmentLevel high|medium|low, returnPath [..]
6. marketCompetitiveness (15%) - timing and position
   fields: marketTiming optimal|acceptable|poor, competitivePosition leading|following|lagging

Per-dimension bands: 90-100 excellent, 70-89 good with gaps, 50-69 weak, below 50 poor.

Output rules:
- Do not write a summary field
- Never invent figures such as "70% cost savings" or "300% ROI" unless the input states them
- Each analysis is 2-4 connected sentences, not a bullet list
- Balance opportunities against risks
- Recommendations must be concrete
- Include a disclaimer that this is decision support, not investment advice

Output a single JSON object with keys: score, disclaimer, dimensions {..six dimensions..},
opportunities, risks, recommendations. Every dimension has score, analysis, scoreRationale
and its own fields."""


EXAMPLES = """# Reference case

## AI customer service for an e-commerce platform (high value)
Input: a 200-person support team handles pre-sales questions, order lookups and returns; labour
cost keeps rising and there is no overnight coverage. Goal: AI handles routine questions, people
handle complaints. Model Llama 3 70B; NVIDIA A100 (80GB) x 2; data: 10,000 anonymised support
conversations, curated; 50 tokens/s, concurrency 100.
Output:
{
  "score": 84,
  "disclaimer": "This assessment is a decision-support aid and does not constitute investment advice.",
  "dimensions": {
    "problemScenarioFocus": {"score": 92, "painPointClarity": "clear", "aiNecessity": "essential",
      "analysis": "Repetitive order and returns questions dominate the queue and are well suited to automation. Keeping people on complex cases is a realistic division of work.",
      "scoreRationale": "Clear, recurring pain point that AI addresses directly."},
    "technicalBarrier": {"score": 88, "differentiationLevel": "high",
      "competitiveAdvantages": ["Conversation data stays in-house", "Model tuned on the shop's own tone and policies"],
      "analysis": "AI support is common, but a privately hosted model trained on in-house dialogues is hard for competitors to copy.",
      "scoreRationale": "Data ownership forms a real moat."},
    "dataSupportPotential": {"score": 82, "dataCompleteness": 75, "dataAccuracy": 85, "dataTimeliness": 80,
      "flywheelPotential": "strong",
      "analysis": "The conversations cover common cases; long-tail questions need ongoing additions. Every resolved ticket adds training material.",
      "scoreRationale": "Good base with a strong flywheel."},
    "aiTalentReserve": {"score": 70, "talentLevel": "moderate",
      "capabilityGaps": ["MLOps for high availability"],
      "developmentSuggestions": ["Hire or contract an MLOps engineer before launch"],
      "analysis": "The plan shows sound technical judgement, but running a private model needs dedicated serving and monitoring skills.",
      "scoreRationale": "Core skills present, operations gap."},
    "roiFeasibility": {"score": 85, "investmentLevel": "medium",
      "returnPath": ["Lower support labour per order", "Overnight coverage"],
      "analysis": "Hardware and setup are a moderate one-off cost against a recurring labour saving and better response times.",
      "scoreRationale": "Clear return path."},
    "marketCompetitiveness": {"score": 80, "marketTiming": "optimal", "competitivePosition": "following",
      "analysis": "Customers now expect instant answers; the plan keeps pace with competitors and can lead on quality.",
      "scoreRationale": "Good timing, parity position."}
  },
  "opportunities": ["Reuse the assistant for pre-sales recommendations"],
  "risks": ["Poor answers on policy questions can damage trust"],
  "recommendations": ["Launch on order lookups first, then widen scope by measured resolution rate"]
}"""


class BusinessProfile(EvaluatorProfile):
    name = "business"
    instructions = INSTRUCTIONS
    examples = EXAMPLES
    response_model = BusinessVerdict

    def __init__(self):
        self.evaluation_retry = RetryOptions(
            max_retries=settings.BUSINESS_MAX_RETRIES,
            timeout_ms=settings.BUSINESS_TIMEOUT_MS,
            initial_delay_ms=settings.BUSINESS_INITIAL_DELAY_MS,
        )
        self.summary_retry = RetryOptions(
            max_retries=settings.SUMMARY_MAX_RETRIES,
            timeout_ms=settings.SUMMARY_TIMEOUT_MS,
        )

    def build_request_block(self, plan: PlanRequest, context: EvaluationContext) -> str:
        data = plan.data_description or "no data description provided"
        return f"""# Evaluate the business value of this plan

## Business scenario
{plan.business_scenario}

## Technical plan
- Model: {plan.model_id}
- Hardware: {plan.accelerator_id}, {plan.machine_count} machine(s) x {plan.accelerators_per_machine} = {plan.accelerator_count} accelerators
- Training data: {data} ({plan.quality_label})
- Performance: {plan.target_tokens_per_second} tokens/s, concurrency {plan.target_concurrency}

Follow the reference case's depth and style. Return only the JSON object."""

    def build_summary_prompt(self, verdict: BusinessVerdict, plan: PlanRequest, high: bool) -> str:
        d = verdict.dimensions
        results = "\n".join([
            f"1. Problem-scenario focus ({d.problem_scenario_focus.score}): {d.problem_scenario_focus.analysis}",
            f"2. Technical barrier ({d.technical_barrier.score}): {d.technical_barrier.analysis}",
            f"3. Data support potential ({d.data_support_potential.score}): {d.data_support_potential.analysis}",
            f"4. AI talent reserve ({d.ai_talent_reserve.score}): {d.ai_talent_reserve.analysis}",
            f"5. ROI feasibility ({d.roi_feasibility.score}): {d.roi_feasibility.analysis}",
            f"6. Market competitiveness ({d.market_competitiveness.score}): {d.market_competitiveness.analysis}",
        ])

        if high:
            framing = f"""This is a strong plan ({verdict.score}/100). Write the summary so that it:
1. names the core pain point solved and the advantage of AI over conventional approaches
2. explains the return path qualitatively
3. notes the market opportunity and the main risk to watch
4. gives the first action to take"""
        else:
            risks = "\n".join(f"- {risk}" for risk in verdict.risks) or "- none listed"
            framing = f"""This plan has serious problems ({verdict.score}/100).
Key risks:
{risks}

Write the summary so that it:
1. states the core problem plainly ("limited business value", "not recommended" are acceptable)
2. explains the root cause (AI not needed, poor return, weak position, high risk)
3. points to the right direction, including a non-AI approach if that fits better"""

        return f"""You are a senior AI business consultant writing the summary of a business-value assessment.

Scenario: {plan.business_scenario}
Model: {plan.model_id}; hardware: {plan.accelerator_id}, {plan.machine_count} machine(s) x {plan.accelerators_per_machine}
Data: {plan.data_description} ({plan.quality_label})

Dimension results:
{results}

{framing}

Strictly no invented figures: no ROI percentages, savings numbers or market shares.
2-3 sentences. Output the summary text only."""

    def fallback_summary(self, high: bool) -> str:
        if high:
            return "Business value evaluation complete; see the dimension details."
        return "Business value evaluation found issues; see the dimension details."


def create_business_evaluator(
    endpoint=None,
    invoker: Optional[ResilientInvoker] = None,
) -> StructuredEvaluator:
    return StructuredEvaluator(BusinessProfile(), endpoint=endpoint, invoker=invoker)
