"""Typed events and the envelope they travel in.

The wire shape (id, type, program_id, timestamp, source, payload,
correlation_id, metadata) matches what the other services publish; the typed
bodies are validated when an envelope is created and when one is received.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar

from artifact_worker.events.exceptions import EventValidationError

EVENT_SOURCE = "artifact-worker"


class EventType:
    ARTIFACT_UPLOADED = "artifact.uploaded"
    ARTIFACT_ANALYZED = "artifact.analyzed"
    ARTIFACT_EMBEDDINGS_CREATED = "artifact.embeddings_created"


@dataclass(frozen=True)
class ArtifactUploaded:
    kind: ClassVar[str] = EventType.ARTIFACT_UPLOADED

    artifact_id: str
    program_id: str

    def to_payload(self) -> dict[str, Any]:
        return {"artifact_id": self.artifact_id}

    @classmethod
    def from_payload(cls, program_id: str, payload: dict[str, Any]) -> "ArtifactUploaded":
        return cls(
            artifact_id=_require_str(payload, "artifact_id", cls.kind),
            program_id=program_id,
        )


@dataclass(frozen=True)
class ArtifactAnalyzed:
    kind: ClassVar[str] = EventType.ARTIFACT_ANALYZED

    artifact_id: str
    program_id: str

    def to_payload(self) -> dict[str, Any]:
        return {"artifact_id": self.artifact_id}

    @classmethod
    def from_payload(cls, program_id: str, payload: dict[str, Any]) -> "ArtifactAnalyzed":
        return cls(
            artifact_id=_require_str(payload, "artifact_id", cls.kind),
            program_id=program_id,
        )


@dataclass(frozen=True)
class ArtifactEmbeddingsCreated:
    kind: ClassVar[str] = EventType.ARTIFACT_EMBEDDINGS_CREATED

    artifact_id: str
    program_id: str
    model: str

    def to_payload(self) -> dict[str, Any]:
        return {"artifact_id": self.artifact_id, "model": self.model}

    @classmethod
    def from_payload(
        cls, program_id: str, payload: dict[str, Any]
    ) -> "ArtifactEmbeddingsCreated":
        return cls(
            artifact_id=_require_str(payload, "artifact_id", cls.kind),
            program_id=program_id,
            model=_require_str(payload, "model", cls.kind),
        )


EventBody = ArtifactUploaded | ArtifactAnalyzed | ArtifactEmbeddingsCreated

EVENT_BODIES: dict[str, type[EventBody]] = {
    ArtifactUploaded.kind: ArtifactUploaded,
    ArtifactAnalyzed.kind: ArtifactAnalyzed,
    ArtifactEmbeddingsCreated.kind: ArtifactEmbeddingsCreated,
}


@dataclass(frozen=True)
class Event:
    """Immutable event envelope."""

    id: str
    type: str
    program_id: str
    timestamp: datetime
    source: str
    payload: dict[str, Any]
    correlation_id: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        body: EventBody,
        *,
        source: str,
        correlation_id: str | None = None,
    ) -> "Event":
        """Build an envelope from a typed body.

        A missing correlation_id starts a new causal chain.
        """
        if not body.program_id:
            raise EventValidationError(f"{body.kind}: program_id is required")
        payload = body.to_payload()
        # Round-trip through the parser so published payloads are always readable.
        EVENT_BODIES[body.kind].from_payload(body.program_id, payload)
        return cls(
            id=str(uuid.uuid4()),
            type=body.kind,
            program_id=body.program_id,
            timestamp=datetime.now(UTC),
            source=source,
            payload=payload,
            correlation_id=correlation_id or str(uuid.uuid4()),
        )

    def body(self) -> EventBody:
        """Parse the payload into the typed body for this kind."""
        body_cls = EVENT_BODIES.get(self.type)
        if body_cls is None:
            raise EventValidationError(f"Unknown event type: {self.type}")
        return body_cls.from_payload(self.program_id, self.payload)

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "program_id": self.program_id,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
            "payload": self.payload,
            "correlation_id": self.correlation_id,
            "metadata": self.metadata,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    @classmethod
    def from_wire(cls, data: Any) -> "Event":
        """Validate and build an envelope received from the bus.

        Raises:
            EventValidationError: on a malformed envelope or payload.
        """
        if not isinstance(data, dict):
            raise EventValidationError("Event must be a JSON object")
        for name in ("id", "type", "program_id"):
            if not isinstance(data.get(name), str) or not data[name]:
                raise EventValidationError(f"Event field '{name}' must be a non-empty string")
        payload = data.get("payload")
        if not isinstance(payload, dict):
            raise EventValidationError("Event field 'payload' must be an object")

        event = cls(
            id=data["id"],
            type=data["type"],
            program_id=data["program_id"],
            timestamp=_parse_timestamp(data.get("timestamp")),
            source=str(data.get("source") or ""),
            payload=payload,
            correlation_id=str(data.get("correlation_id") or ""),
            metadata=data.get("metadata") if isinstance(data.get("metadata"), dict) else {},
        )
        if event.type in EVENT_BODIES:
            event.body()
        return event

    @classmethod
    def from_json(cls, raw: str) -> "Event":
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as exc:
            raise EventValidationError(f"Invalid event JSON: {exc}") from exc
        return cls.from_wire(data)


def _require_str(payload: dict[str, Any], key: str, kind: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise EventValidationError(f"{kind}: payload '{key}' must be a non-empty string")
    return value


def _parse_timestamp(raw: Any) -> datetime:
    if not isinstance(raw, str):
        return datetime.now(UTC)
    try:
        # Other producers may send a trailing Z instead of an offset.
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(UTC)
