"""
Frames emitted on the incremental output channel.

Each frame is small and independently meaningful. `complete` is always the
last frame of a finished run; `rejected` is the only frame of a refused plan.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.types.enums import Stage


class Frame(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    stage: Stage
    record_id: Optional[str] = None
    payload: Optional[Any] = None
    which: Optional[Stage] = None
    message: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_sse(self) -> str:
        """Server-sent-event line: `data: {...}` followed by a blank line."""
        return f"data: {self.to_json()}\n\n"
