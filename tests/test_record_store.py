import json

import pytest

from core.capacity import CapacityModel
from core.errors import RecordConflictError
from core.record_store import JsonRecordStore
from core.types.models import EvaluationRecord


@pytest.fixture
def store(tmp_path):
    return JsonRecordStore(tmp_path / "records")


@pytest.fixture
def record(plan):
    resource = CapacityModel().assess(plan.model_id, plan.accelerator_id, 1, 50)
    return EvaluationRecord(plan=plan, resource_feasibility=resource)


@pytest.mark.asyncio
async def test_create_writes_camel_case_json(store, record):
    await store.create(record)

    with open(store.path_for(record.id)) as f:
        data = json.load(f)
    assert data["id"] == record.id
    assert data["plan"]["modelId"] == "Llama 3 8B"
    assert data["resourceFeasibility"]["hardwareScore"] == 0
    assert data["archived"] is False
    assert list(store.directory.glob("*.tmp")) == []


@pytest.mark.asyncio
async def test_create_is_idempotent(store, record):
    await store.create(record)
    await store.create(record)
    assert store.list_ids() == [record.id]


@pytest.mark.asyncio
async def test_conflicting_create_raises(store, record):
    await store.create(record)
    changed = record.model_copy(update={"archived": True})
    with pytest.raises(RecordConflictError) as exc_info:
        await store.create(changed)
    assert exc_info.value.record_id == record.id


@pytest.mark.asyncio
async def test_get_round_trips(store, record):
    await store.create(record)
    loaded = store.get(record.id)
    assert loaded.id == record.id
    assert loaded.plan == record.plan
    assert loaded.resource_feasibility.inference.memory_usage_percent == 114


def test_missing_record_is_none(store):
    assert store.get("eval_missing") is None
    assert store.list_ids() == []
