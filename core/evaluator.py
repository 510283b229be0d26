#!/usr/bin/env python3
"""
Generic structured evaluator.

One evaluator class drives every evaluation kind. What differs between the
technical and business evaluations (instructions, few-shot examples, verdict
schema, prompt builders, retry budgets) lives in an EvaluatorProfile.

A run has three phases:
1. Assemble: [system instructions, system examples, user request block]
2. Invoke & validate: JSON-mode call through the ResilientInvoker, parse,
   validate against the profile's verdict schema, recompute the score
3. Summarize: second call whose framing depends on the score; failures
   fall back to a fixed sentence and never fail the evaluation
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError

from core.client import ChatEndpoint
from core.config import settings
from core.errors import EvaluationFailedError, InvocationCancelledError, MalformedOutputError
from core.retry import ResilientInvoker, RetryOptions
from core.types.models import ModelProfile, PlanRequest, ResourceFeasibility
from core.utils import get_logger
from schemas.base import VerdictBase

logger = get_logger("StructuredEvaluator")


@dataclass(frozen=True)
class EvaluationContext:
    """Deterministic facts handed to an evaluator alongside the plan."""
    model_profile: Optional[ModelProfile] = None
    resource_feasibility: Optional[ResourceFeasibility] = None



class EvaluatorProfile(ABC):
    """
    Strategy object describing one evaluation kind.

    Subclasses set the class attributes and implement the prompt builders.
    """
    name: str = "evaluator"
    instructions: str = ""
    examples: str = ""
    response_model: Type[VerdictBase]
    evaluation_retry: RetryOptions = RetryOptions()
    summary_retry: RetryOptions = RetryOptions()

    @abstractmethod
    def build_request_block(self, plan: PlanRequest, context: EvaluationContext) -> str:
        """Variable user block for one plan."""

    @abstractmethod
    def build_summary_prompt(self, verdict: VerdictBase, plan: PlanRequest, high: bool) -> str:
        """Prompt for the summary pass; `high` selects strength framing."""

    @abstractmethod
    def fallback_summary(self, high: bool) -> str:
        """Fixed sentence used when the summary pass fails."""

    def finalize(self, verdict: VerdictBase, context: EvaluationContext) -> VerdictBase:
        """Hook for injecting deterministic facts after parsing."""
        return verdict


def _strip_code_fence(text: str) -> str:
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


class StructuredEvaluator:
    """
    Runs one EvaluatorProfile against the remote chat endpoint.

    Usage:
        evaluator = StructuredEvaluator(TechnicalProfile())
        verdict = await evaluator.evaluate(plan, context)
    """

    def __init__(
        self,
        profile: EvaluatorProfile,
        endpoint: Optional[ChatEndpoint] = None,
        invoker: Optional[ResilientInvoker] = None,
        summary_threshold: Optional[int] = None,
    ):
        self.profile = profile
        self.endpoint = endpoint or ChatEndpoint()
        self.invoker = invoker or ResilientInvoker()
        self.summary_threshold = (
            settings.SUMMARY_SCORE_THRESHOLD if summary_threshold is None else summary_threshold
        )

    @property
    def name(self) -> str:
        return self.profile.name

    def assemble(self, plan: PlanRequest, context: Optional[EvaluationContext] = None) -> List[Dict[str, str]]:
        """Fixed blocks first, as separate system messages, so the endpoint can cache them."""
        context = context or EvaluationContext()
        return [
            {"role": "system", "content": self.profile.instructions},
            {"role": "system", "content": self.profile.examples},
            {"role": "user", "content": self.profile.build_request_block(plan, context)},
        ]

    def parse(self, content: Optional[str]) -> VerdictBase:
        """
        Validate a raw payload against the profile's verdict schema.

        Raises:
            MalformedOutputError: empty payload, invalid JSON or missing fields.
        """
        text = _strip_code_fence((content or "").strip())
        if not text:
            raise MalformedOutputError(self.name, 0, "empty payload")
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedOutputError(self.name, len(text), f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedOutputError(self.name, len(text), "payload is not a JSON object")
        try:
            return self.profile.response_model.model_validate(data)
        except ValidationError as e:
            raise MalformedOutputError(
                self.name, len(text), f"{e.error_count()} schema errors, first: {e.errors()[0]['loc']}"
            ) from e

    async def evaluate(
        self,
        plan: PlanRequest,
        context: Optional[EvaluationContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> VerdictBase:
        """
        Produce a verdict for one plan.

        Raises:
            MalformedOutputError: the endpoint answered with unusable content
            EvaluationFailedError: the endpoint could not be reached within budget
            InvocationCancelledError: cancel_event fired
        """
        context = context or EvaluationContext()
        messages = self.assemble(plan, context)
        logger.info(f"Starting {self.name} evaluation for {plan.model_id}")

        try:
            result = await self.invoker.run(
                lambda: self.endpoint.complete(messages, json_mode=True),
                self.profile.evaluation_retry,
                cancel_event=cancel_event,
                label=f"{self.name} evaluation",
            )
        except InvocationCancelledError:
            raise
        except Exception as e:
            logger.error(f"{self.name} evaluation failed: {e}")
            raise EvaluationFailedError(self.name, e) from e

        logger.debug(f"{self.name} payload length {len(result.content)}, usage {result.usage}")

        verdict = self.profile.finalize(self.parse(result.content), context)
        score = verdict.weighted_score()
        if round(verdict.score) != score:
            logger.debug(f"{self.name}: reported score {verdict.score} replaced by weighted {score}")
        verdict = verdict.model_copy(update={"score": score, "summary": None})

        summary = await self.summarize(verdict, plan, cancel_event)
        logger.info(f"Finished {self.name} evaluation: score {score}")
        return verdict.model_copy(update={"summary": summary})

    async def summarize(
        self,
        verdict: VerdictBase,
        plan: PlanRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Second pass. Any failure degrades to the profile's fallback sentence."""
        high = verdict.score >= self.summary_threshold
        prompt = self.profile.build_summary_prompt(verdict, plan, high)
        try:
            result = await self.invoker.run(
                lambda: self.endpoint.complete([{"role": "user", "content": prompt}], json_mode=False),
                self.profile.summary_retry,
                cancel_event=cancel_event,
                label=f"{self.name} summary",
            )
        except InvocationCancelledError:
            raise
        except Exception as e:
            logger.warning(f"{self.name} summary failed, using fallback: {e}")
            return self.profile.fallback_summary(high)

        logger.debug(f"{self.name} summary usage {result.usage}")
        text = result.content.strip()
        if not text:
            logger.warning(f"{self.name} summary was empty, using fallback")
            return self.profile.fallback_summary(high)
        return text
