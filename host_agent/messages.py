"""
Messages
========

Frames exchanged with the controller over the websocket.

  Controller → Agent:  {"Type": <InboundKind>,  "Data": "<string>"}
  Agent → Controller:  {"Type": <OutboundKind>, "Data": "<string>"}
  Agent → Controller (once, right after connecting):
      {"Type": 6, "Token": ..., "Metric": {...},
       "DockerImages": [...], "DockerContainers": [...]}

The integer values of both enums are the controller's wire contract and must
never be reordered.
"""

from __future__ import annotations
import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .models import ContainerRecord, ImageRecord, MetricSnapshot


class InboundKind(IntEnum):
    START_CONTAINER  = 0
    STOP_CONTAINER   = 1
    REMOVE_CONTAINER = 2
    REMOVE_IMAGE     = 3
    RUN_SCRIPT       = 4
    RUN_COMMAND      = 5
    RESTART          = 6
    OK               = 7


class OutboundKind(IntEnum):
    SEND_METRIC       = 0
    ADDED_IMAGE       = 1
    ADDED_CONTAINER   = 2
    REMOVED_IMAGE     = 3
    REMOVED_CONTAINER = 4
    UPDATED_CONTAINER = 5
    START             = 6
    RESULT            = 7
    RESTARTED         = 8
    NONE              = 9


class MessageDecodeError(ValueError):
    """An inbound frame is not a valid command envelope."""


# ─── Inbound ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InboundMessage:
    type: int
    data: str = ""

    @property
    def kind(self) -> Optional[InboundKind]:
        """The recognized kind, or None for a type this agent does not know."""
        try:
            return InboundKind(self.type)
        except ValueError:
            return None

    @classmethod
    def decode(cls, raw: str | bytes) -> "InboundMessage":
        try:
            obj = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MessageDecodeError(f"invalid JSON: {e}") from e

        if not isinstance(obj, dict):
            raise MessageDecodeError(f"expected an object, got {type(obj).__name__}")

        msg_type = obj.get("Type")
        # bool is an int subclass; true/false is not a message type
        if not isinstance(msg_type, int) or isinstance(msg_type, bool):
            raise MessageDecodeError(f"missing or non-integer Type: {msg_type!r}")

        data = obj.get("Data", "")
        if data is None:
            data = ""
        if not isinstance(data, str):
            raise MessageDecodeError(f"Data must be a string, got {type(data).__name__}")

        return cls(type=msg_type, data=data)


# ─── Outbound ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OutboundMessage:
    kind: OutboundKind
    data: str = ""

    def to_wire(self) -> dict:
        return {"Type": int(self.kind), "Data": self.data}

    def encode(self) -> str:
        return json.dumps(self.to_wire())

    # Constructors for the payload shapes the agent produces

    @classmethod
    def result(cls, body: str) -> "OutboundMessage":
        return cls(OutboundKind.RESULT, body)

    @classmethod
    def restarted(cls) -> "OutboundMessage":
        return cls(OutboundKind.RESTARTED, "Ok")

    @classmethod
    def metric(cls, snapshot: MetricSnapshot) -> "OutboundMessage":
        return cls(OutboundKind.SEND_METRIC, json.dumps(snapshot.to_wire()))

    @classmethod
    def for_record(
        cls,
        kind: OutboundKind,
        record: ImageRecord | ContainerRecord,
    ) -> "OutboundMessage":
        return cls(kind, json.dumps(record.to_wire()))


@dataclass(frozen=True)
class StartPayload:
    token:      str
    metric:     MetricSnapshot
    images:     list[ImageRecord]
    containers: list[ContainerRecord]

    def to_wire(self) -> dict:
        return {
            "Type":             int(OutboundKind.START),
            "Token":            self.token,
            "Metric":           self.metric.to_wire(),
            "DockerImages":     [img.to_wire() for img in self.images],
            "DockerContainers": [ctr.to_wire() for ctr in self.containers],
        }

    def encode(self) -> str:
        return json.dumps(self.to_wire())
