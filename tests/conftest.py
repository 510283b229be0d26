import copy
from unittest.mock import AsyncMock

import pytest

from core.client import ChatResult, TokenUsage
from core.retry import ResilientInvoker
from core.types.models import PlanRequest


TECHNICAL_PAYLOAD = {
    "score": 99,
    "dimensions": {
        "modelTaskAlignment": {"status": "matched", "score": 90, "analysis": "Text task on a text model."},
        "llmNecessity": {"status": "necessary", "score": 80, "analysis": "Open-ended answers."},
        "fineTuning": {"necessary": False, "dataAdequacy": "sufficient", "score": 70, "analysis": "RAG first."},
        "implementationRoadmap": {
            "feasible": True,
            "score": 80,
            "analysis": "Phased.",
            "phases": {"shortTerm": ["RAG pilot"], "midTerm": ["LoRA"]},
        },
        "performanceRequirements": {"reasonable": True, "score": 60, "analysis": "Coherent."},
        "costEfficiency": {"level": "reasonable", "score": 50, "analysis": "Proportionate."},
    },
    "criticalIssues": [],
    "warnings": ["Keep a human hand-off"],
    "recommendations": ["Build a regression set"],
}

BUSINESS_PAYLOAD = {
    "score": 10,
    "disclaimer": "Decision support only.",
    "dimensions": {
        "problemScenarioFocus": {
            "score": 90, "analysis": "Clear pain point.",
            "painPointClarity": "clear", "aiNecessity": "essential",
        },
        "technicalBarrier": {
            "score": 60, "analysis": "Some moat.",
            "differentiationLevel": "medium", "competitiveAdvantages": ["Own data"],
        },
        "dataSupportPotential": {
            "score": 80, "analysis": "Good data.",
            "dataCompleteness": 75, "dataAccuracy": 85, "dataTimeliness": 80,
            "flywheelPotential": "strong",
        },
        "aiTalentReserve": {
            "score": 50, "analysis": "Gaps.",
            "talentLevel": "weak", "capabilityGaps": ["MLOps"], "developmentSuggestions": ["Hire"],
        },
        "roiFeasibility": {
            "score": 70, "analysis": "Plausible.",
            "investmentLevel": "medium", "returnPath": ["Labour savings"],
        },
        "marketCompetitiveness": {
            "score": 40, "analysis": "Crowded.",
            "marketTiming": "acceptable", "competitivePosition": "following",
        },
    },
    "opportunities": ["Upsell"],
    "risks": ["Policy mistakes"],
    "recommendations": ["Start small"],
}


@pytest.fixture
def technical_payload():
    return copy.deepcopy(TECHNICAL_PAYLOAD)


@pytest.fixture
def business_payload():
    return copy.deepcopy(BUSINESS_PAYLOAD)


@pytest.fixture
def plan():
    return PlanRequest(
        model_id="Llama 3 8B",
        accelerator_id="NVIDIA RTX 4090",
        machine_count=1,
        accelerators_per_machine=1,
        data_description="20,000 anonymised customer support conversations",
        business_scenario="Answer routine order and returns questions for an online shop",
        target_tokens_per_second=50,
        target_concurrency=100,
    )


@pytest.fixture
def instant_invoker():
    """Invoker whose backoff sleeps return immediately."""
    return ResilientInvoker(sleep=AsyncMock())


class FakeEndpoint:
    """Scripted chat endpoint: each call pops the next response or raises it."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def complete(self, messages, json_mode=True, temperature=None, model=None):
        self.calls.append({"messages": messages, "json_mode": json_mode})
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return ChatResult(content=item, usage=TokenUsage(10, 5, 15))
