#!/usr/bin/env python3
"""
Intent Guard - admission check run before any evaluation.

Two layers:
1. Local heuristic: scenario and data description must each reach a minimum
   length. Cheap and deterministic.
2. Optional LLM check: is this a genuine enterprise AI planning request?
   Fails open; a broken check never blocks a plan.
"""

import asyncio
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from core.client import LLMClientFactory
from core.config import settings
from core.constants import INTENT_TEMPERATURE
from core.errors import InvocationCancelledError
from core.retry import ResilientInvoker, RetryOptions
from core.types.models import PlanRequest
from core.utils import get_logger

logger = get_logger("IntentGuard")


class IntentAssessment(BaseModel):
    """Structured answer requested from the intent model."""
    allowed: bool = Field(description="True if the request is a genuine enterprise AI planning request")
    severity: Literal["info", "warn", "block"] = Field(default="info")
    reason: str = Field(default="", description="One sentence explaining the decision")


class IntentVerdict(BaseModel):
    """Outcome of the admission check."""
    allowed: bool
    reason: str = ""
    severity: Literal["info", "warn", "block"] = "info"


INTENT_PROMPT = """You are the admission filter of an enterprise AI feasibility assessment tool.
Decide whether the request below belongs to that use: planning, resourcing, model selection or
deployment feasibility of an AI project for a company or organisation.

Reject (allowed=false, severity=block) if any of these apply:
- small talk, unrelated topics, personal matters
- illegal, sexual, extremist or violent content
- placeholder or meaningless text (repeated characters, filler, lorem ipsum)

Request:
- Model: {model}
- Hardware: {accelerator}, {machines} machine(s) x {per_machine}
- Business scenario: {scenario}
- Data description: {data}
- Performance: {tps} tokens/s, concurrency {concurrency}"""


class IntentGuard:
    """
    Admission check for deployment plans.

    Usage:
        guard = IntentGuard()
        verdict = await guard.check(plan)
        if not verdict.allowed: ...
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        invoker: Optional[ResilientInvoker] = None,
        min_chars: Optional[int] = None,
        llm_check: Optional[bool] = None,
        model: Optional[str] = None,
    ):
        self._async_client = client
        self.invoker = invoker or ResilientInvoker()
        self.min_chars = settings.MIN_DESCRIPTION_CHARS if min_chars is None else min_chars
        self.llm_check = settings.INTENT_CHECK_ENABLED if llm_check is None else llm_check
        self.model = model or settings.get_intent_model()
        self.retry = RetryOptions(
            max_retries=settings.INTENT_MAX_RETRIES,
            timeout_ms=settings.INTENT_TIMEOUT_MS,
        )

    @property
    def async_client(self):
        """Initialize and return the Instructor-patched client (Async)."""
        if self._async_client is None:
            self._async_client = LLMClientFactory.create_structured_async()
        return self._async_client

    def heuristic(self, plan: PlanRequest) -> Optional[IntentVerdict]:
        """Return a rejection if a free-text field is too short, else None."""
        problem = plan.admission_problem(self.min_chars)
        if problem is not None:
            return IntentVerdict(allowed=False, reason=problem, severity="block")
        return None

    async def check(self, plan: PlanRequest, cancel_event: Optional[asyncio.Event] = None) -> IntentVerdict:
        rejection = self.heuristic(plan)
        if rejection is not None:
            logger.info(f"Plan rejected by heuristic: {rejection.reason}")
            return rejection

        if not self.llm_check:
            return IntentVerdict(allowed=True, reason="Intent check disabled")
        if self._async_client is None and not settings.LLM_API_KEY:
            logger.warning("LLM_API_KEY not set, skipping intent check")
            return IntentVerdict(allowed=True, reason="Intent check skipped: no credentials")

        prompt = INTENT_PROMPT.format(
            model=plan.model_id,
            accelerator=plan.accelerator_id,
            machines=plan.machine_count,
            per_machine=plan.accelerators_per_machine,
            scenario=plan.business_scenario,
            data=plan.data_description,
            tps=plan.target_tokens_per_second,
            concurrency=plan.target_concurrency,
        )
        try:
            assessment: IntentAssessment = await self.invoker.run(
                lambda: self.async_client.chat.completions.create(
                    model=self.model,
                    response_model=IntentAssessment,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=INTENT_TEMPERATURE,
                ),
                self.retry,
                cancel_event=cancel_event,
                label="intent check",
            )
        except InvocationCancelledError:
            raise
        except Exception as e:
            logger.warning(f"Intent check failed, allowing plan: {e}")
            return IntentVerdict(allowed=True, reason="Intent check failed; allowed by default", severity="warn")

        if not assessment.allowed:
            logger.info(f"Plan rejected by intent check: {assessment.reason}")
            return IntentVerdict(
                allowed=False,
                reason=assessment.reason or "Request does not match the tool's purpose",
                severity="block",
            )
        return IntentVerdict(allowed=True, reason=assessment.reason, severity=assessment.severity)
