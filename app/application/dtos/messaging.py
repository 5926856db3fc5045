"""Envelope passed between the event bus and its subscribers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.shared.utils.datetime import ensure_utc, utc_now


@dataclass(frozen=True)
class EventMessage:
    """One published event: topic, JSON payload, publish time and optional metadata."""

    type: str
    payload: dict[str, Any]
    timestamp: datetime = field(default_factory=utc_now)
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventMessage:
        raw_ts = data.get("timestamp")
        timestamp = (
            ensure_utc(datetime.fromisoformat(raw_ts)) if isinstance(raw_ts, str) else utc_now()
        )
        return cls(
            type=str(data.get("type", "")),
            payload=dict(data.get("payload") or {}),
            timestamp=timestamp,
            metadata=data.get("metadata"),
        )
