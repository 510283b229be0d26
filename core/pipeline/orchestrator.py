#!/usr/bin/env python3
"""
Evaluation Orchestrator.

Drives one plan through admission, capacity, technical and business stages
and streams a frame as soon as each stage has a result:

    [rejected]                                      refused plan, nothing else
    resource -> technical|error -> business|error -> complete

A failed evaluator becomes an error frame scoped to that stage; the sibling
stage still runs and the run still completes. The aggregate record is
persisted once both stages have settled, before the complete frame goes
out; storage failures are logged only.

Plans whose scenario or data description is shorter than
settings.MIN_DESCRIPTION_CHARS are always rejected before stage 1; the
injected intent guard adds an optional LLM check on top.
"""

import asyncio
from typing import AsyncIterator, List, Optional, Tuple

from core.capacity import CapacityModel
from core.config import settings
from core.errors import CapacityValidationError, InvocationCancelledError
from core.evaluator import EvaluationContext, StructuredEvaluator
from core.pipeline.frames import Frame
from core.record_store import RecordStore
from core.types.enums import Stage
from core.types.models import EvaluationRecord, PlanRequest
from core.utils import get_logger
from schemas.base import VerdictBase

logger = get_logger("EvaluationOrchestrator")

INSUFFICIENT_DATA_MESSAGE = "insufficient reference data"

StageOutcome = Tuple[Stage, Optional[VerdictBase], Optional[BaseException]]


class EvaluationOrchestrator:
    """
    Per-plan pipeline driver. Holds no per-plan state; one instance can
    serve many concurrent plans.

    Usage:
        orchestrator = EvaluationOrchestrator(capacity, technical, business, guard, store)
        async for frame in orchestrator.stream(plan):
            print(frame.to_sse())
    """

    def __init__(
        self,
        capacity_model: Optional[CapacityModel] = None,
        technical_evaluator: Optional[StructuredEvaluator] = None,
        business_evaluator: Optional[StructuredEvaluator] = None,
        intent_guard=None,
        record_store: Optional[RecordStore] = None,
        concurrent: Optional[bool] = None,
        min_description_chars: Optional[int] = None,
    ):
        self.capacity_model = capacity_model or CapacityModel()
        self.technical_evaluator = technical_evaluator
        self.business_evaluator = business_evaluator
        self.intent_guard = intent_guard
        self.record_store = record_store
        self.concurrent = settings.CONCURRENT_STAGES if concurrent is None else concurrent
        self.min_description_chars = (
            settings.MIN_DESCRIPTION_CHARS if min_description_chars is None else min_description_chars
        )

    async def stream(
        self,
        plan: PlanRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Frame]:
        """
        Evaluate one plan, yielding frames in the order results become available.

        Setting `cancel_event` (or closing the generator) stops the run: no
        further frames, in-flight calls abandoned, nothing persisted.
        """
        record = EvaluationRecord(plan=plan)
        rid = record.id

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        logger.info(f"Evaluation {rid} started: {plan.model_id} on {plan.accelerator_count}x {plan.accelerator_id}")

        problem = plan.admission_problem(self.min_description_chars)
        if problem is not None:
            logger.info(f"Evaluation {rid} rejected: {problem}")
            yield Frame(stage=Stage.REJECTED, record_id=rid, message=problem)
            return

        if self.intent_guard is not None:
            try:
                verdict = await self.intent_guard.check(plan, cancel_event=cancel_event)
            except InvocationCancelledError:
                logger.info(f"Evaluation {rid} cancelled during admission")
                return
            if not verdict.allowed:
                yield Frame(stage=Stage.REJECTED, record_id=rid, message=verdict.reason)
                return
        if cancelled():
            return

        try:
            resource = self.capacity_model.assess(
                plan.model_id,
                plan.accelerator_id,
                plan.accelerator_count,
                plan.target_tokens_per_second,
            )
        except CapacityValidationError as e:
            yield Frame(stage=Stage.REJECTED, record_id=rid, message=str(e))
            return

        record.resource_feasibility = resource
        yield Frame(
            stage=Stage.RESOURCE,
            record_id=rid,
            payload=resource,
            message=None if resource is not None else INSUFFICIENT_DATA_MESSAGE,
        )

        context = EvaluationContext(
            model_profile=self.capacity_model.catalog.model(plan.model_id),
            resource_feasibility=resource,
        )
        stages = self._stages()

        if self.concurrent:
            tasks = [
                asyncio.ensure_future(self._run_stage(stage, evaluator, plan, context, cancel_event))
                for stage, evaluator in stages
            ]
            try:
                for next_done in asyncio.as_completed(tasks):
                    try:
                        outcome = await next_done
                    except InvocationCancelledError:
                        logger.info(f"Evaluation {rid} cancelled")
                        return
                    if cancelled():
                        return
                    yield self._apply(record, outcome)
            finally:
                pending = [t for t in tasks if not t.done()]
                for task in pending:
                    task.cancel()
                if pending:
                    await asyncio.gather(*pending, return_exceptions=True)
        else:
            for stage, evaluator in stages:
                if cancelled():
                    return
                try:
                    outcome = await self._run_stage(stage, evaluator, plan, context, cancel_event)
                except InvocationCancelledError:
                    logger.info(f"Evaluation {rid} cancelled during {stage.value} stage")
                    return
                if cancelled():
                    return
                yield self._apply(record, outcome)

        if cancelled():
            return
        # Stored before `complete` is handed out; consumers may stop listening there.
        await self._persist(record)
        logger.info(f"Evaluation {rid} complete")
        yield Frame(stage=Stage.COMPLETE, record_id=rid)

    def _stages(self) -> List[Tuple[Stage, Optional[StructuredEvaluator]]]:
        return [
            (Stage.TECHNICAL, self.technical_evaluator),
            (Stage.BUSINESS, self.business_evaluator),
        ]

    async def _run_stage(
        self,
        stage: Stage,
        evaluator: Optional[StructuredEvaluator],
        plan: PlanRequest,
        context: EvaluationContext,
        cancel_event: Optional[asyncio.Event],
    ) -> StageOutcome:
        """Run one evaluator; failures become part of the outcome, cancellation propagates."""
        if evaluator is None:
            return stage, None, RuntimeError(f"no {stage.value} evaluator configured")
        try:
            verdict = await evaluator.evaluate(plan, context, cancel_event=cancel_event)
        except InvocationCancelledError:
            raise
        except Exception as e:
            logger.error(f"{stage.value} stage failed: {e}")
            return stage, None, e
        return stage, verdict, None

    def _apply(self, record: EvaluationRecord, outcome: StageOutcome) -> Frame:
        stage, verdict, error = outcome
        if error is not None:
            return Frame(stage=Stage.ERROR, record_id=record.id, which=stage, message=str(error))
        if stage == Stage.TECHNICAL:
            record.technical = verdict
        else:
            record.business = verdict
        return Frame(stage=stage, record_id=record.id, payload=verdict)

    async def _persist(self, record: EvaluationRecord) -> None:
        if self.record_store is None:
            return
        try:
            await self.record_store.create(record)
        except Exception as e:
            logger.error(f"Failed to persist evaluation {record.id}: {e}", exc_info=True)
