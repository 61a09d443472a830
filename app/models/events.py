from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    RETRIEVAL_STARTED = "retrieval_started"
    SOURCES_READY = "sources_ready"
    ANSWER_PROGRESS = "answer_progress"
    ANSWER_COMPLETE = "answer_complete"
    ENRICHMENT_COMPLETE = "enrichment_complete"
    RESPONSE_COMPLETE = "response_complete"
    ERROR = "error"


@dataclass
class SSEEvent:
    event: EventType
    data: dict[str, Any] = field(default_factory=dict)

    def format(self) -> str:
        return f"event: {self.event.value}\ndata: {json.dumps(self.data)}\n\n"

    def to_sse(self) -> dict[str, str]:
        """Shape expected by sse-starlette's EventSourceResponse."""
        return {"event": self.event.value, "data": json.dumps(self.data)}
