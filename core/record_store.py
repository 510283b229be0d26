"""
Persistence of evaluation records.

The pipeline only needs a single idempotent `create`. JsonRecordStore keeps
one JSON file per record under settings.RECORD_DIR, written atomically
(temp file + rename) under an exclusive lock.
"""

import asyncio
import fcntl
import json
import os
from pathlib import Path
from typing import List, Optional, Protocol

from core.config import settings
from core.errors import RecordConflictError
from core.types.models import EvaluationRecord
from core.utils import get_logger

logger = get_logger("RecordStore")


class RecordStore(Protocol):
    async def create(self, record: EvaluationRecord) -> None:
        ...


class JsonRecordStore:
    """
    File-backed record store.

    Creating a record twice with identical content is a no-op; a second
    create with different content raises RecordConflictError.
    """

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory or settings.RECORD_DIR)

    def path_for(self, record_id: str) -> Path:
        return self.directory / f"{record_id}.json"

    async def create(self, record: EvaluationRecord) -> None:
        snapshot = record.model_copy(deep=True)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: self.create_sync(snapshot))

    def create_sync(self, record: EvaluationRecord) -> None:
        path = self.path_for(record.id)
        payload = record.model_dump(mode="json", by_alias=True)

        if path.exists():
            with open(path, "r") as f:
                existing = json.load(f)
            if existing == payload:
                logger.debug(f"Record {record.id} already stored, skipping")
                return
            raise RecordConflictError(record.id)

        self.directory.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        try:
            with open(temp_path, "w") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
                fcntl.flock(f, fcntl.LOCK_UN)
            temp_path.replace(path)
        finally:
            if temp_path.exists():
                temp_path.unlink()
        logger.info(f"Saved evaluation record {record.id} to {path}")

    def get(self, record_id: str) -> Optional[EvaluationRecord]:
        path = self.path_for(record_id)
        if not path.exists():
            return None
        with open(path, "r") as f:
            return EvaluationRecord.model_validate(json.load(f))

    def list_ids(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
