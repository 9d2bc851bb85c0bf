"""
Models
======

Records exchanged with the controller and the typed outcomes returned by
the collaborators (Docker, executor).

Wire keys follow the controller's contract exactly, including the
"Recourses" spelling on containers.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

# ─── Telemetry ────────────────────────────────────────────────────────────────

# Sub-metric value used when sampling that particular metric failed
METRIC_UNAVAILABLE = -1


@dataclass(frozen=True)
class MetricSnapshot:
    cpu_percent_per_core:   list[float]
    used_ram_bytes:         int
    total_ram_bytes:        int
    used_disk_bytes:        list[int]
    total_disk_bytes:       list[int]
    network_bytes_sent:     int
    network_bytes_received: int
    captured_at:            datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_wire(self) -> dict:
        return {
            "Cpus":           list(self.cpu_percent_per_core),
            "UseRam":         self.used_ram_bytes,
            "TotalRam":       self.total_ram_bytes,
            "UseDisks":       list(self.used_disk_bytes),
            "TotalDisks":     list(self.total_disk_bytes),
            "NetworkSend":    self.network_bytes_sent,
            "NetworkReceive": self.network_bytes_received,
            "Time":           self.captured_at.isoformat(),
        }


# ─── Inventory ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImageRecord:
    name:       str
    size_bytes: float
    hash:       str          # Stable identity key (image id)
    id:         int = 0      # Reserved for the controller, never set locally

    def to_wire(self) -> dict:
        return {
            "Id":   self.id,
            "Name": self.name,
            "Size": self.size_bytes,
            "Hash": self.hash,
        }


@dataclass(frozen=True)
class ContainerRecord:
    name:       str
    image_hash: str
    status:     str
    hash:       str          # Stable identity key (container id)
    resources:  str = ""
    id:         int = 0      # Reserved for the controller
    image_id:   int = 0      # Reserved for the controller

    def to_wire(self) -> dict:
        return {
            "Id":        self.id,
            "Name":      self.name,
            "ImageId":   self.image_id,
            "ImageHash": self.image_hash,
            "Status":    self.status,
            "Recourses": self.resources,
            "Hash":      self.hash,
        }


# ─── Collaborator outcomes ────────────────────────────────────────────────────

@dataclass(frozen=True)
class OperationResult:
    """Outcome of a Docker lifecycle operation. message is empty on success."""
    success: bool
    message: str = ""


@dataclass(frozen=True)
class ExecResult:
    """Combined stdout+stderr of a script/command, plus the failure if any."""
    output: str
    error:  Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
