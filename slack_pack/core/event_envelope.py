from dataclasses import asdict, dataclass
from datetime import datetime, timezone
import json
from typing import Any, Optional
import uuid


@dataclass
class EventEnvelope:
    type: str
    correlation_id: str
    version: int
    timestamp: str
    payload: Any

    @staticmethod
    def create(
        type: str,
        payload: Any,
        version: int = 1,
        correlation_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> "EventEnvelope":
        return EventEnvelope(
            type=type,
            version=version,
            correlation_id=correlation_id or str(uuid.uuid4()),
            timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
            payload=payload,
        )

    @staticmethod
    def from_dict(d: dict) -> "EventEnvelope":
        # payload is kept as-is, command handlers decide what shape they accept
        return EventEnvelope(
            type=d.get("type", ""),
            version=int(d.get("version", 1)),
            correlation_id=d.get("correlation_id", ""),
            timestamp=d.get("timestamp", ""),
            payload=d.get("payload", {}),
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)
