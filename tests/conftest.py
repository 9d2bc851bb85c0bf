"""Shared fakes for the host agent tests: no Docker daemon, no network."""

from __future__ import annotations
import queue
import threading
from datetime import datetime, timezone
from typing import Optional

import pytest

from host_agent.errors import ResourceManagerError
from host_agent.models import ContainerRecord, ExecResult, ImageRecord, MetricSnapshot, OperationResult


def make_container(hash: str, status: str = "running", resources: str = "", name: Optional[str] = None) -> ContainerRecord:
    return ContainerRecord(
        name       = name or f"/ctr-{hash}",
        image_hash = f"sha256:img-{hash}",
        status     = status,
        hash       = hash,
        resources  = resources,
    )


def make_image(hash: str, name: Optional[str] = None) -> ImageRecord:
    return ImageRecord(name=name or f"repo/{hash}:latest", size_bytes=1024.0, hash=hash)


class FakeResources:
    """Resource manager with scripted inventories and recorded lifecycle calls."""

    def __init__(self, containers=(), images=()):
        self.containers = list(containers)
        self.images     = list(images)
        self.calls: list[tuple[str, str]] = []
        self.results: dict[str, OperationResult] = {}
        self.fail_listing = False

    def list_containers(self):
        if self.fail_listing:
            raise ResourceManagerError("docker daemon unreachable")
        return list(self.containers)

    def list_images(self):
        if self.fail_listing:
            raise ResourceManagerError("docker daemon unreachable")
        return list(self.images)

    def _op(self, name, resource_hash):
        self.calls.append((name, resource_hash))
        return self.results.get(name, OperationResult(True, ""))

    def start(self, h):
        return self._op("start", h)

    def stop(self, h):
        return self._op("stop", h)

    def remove(self, h):
        return self._op("remove", h)

    def remove_image(self, h):
        return self._op("remove_image", h)


class FakeExecutor:
    def __init__(self):
        self.calls: list[tuple[str, str]] = []
        self.script_result  = ExecResult("script output\n")
        self.command_result = ExecResult("command output\n")
        self.reboot_error: Optional[str] = None

    def run_script(self, script):
        self.calls.append(("script", script))
        return self.script_result

    def run_command(self, command):
        self.calls.append(("command", command))
        return self.command_result

    def reboot(self):
        self.calls.append(("reboot", ""))
        return self.reboot_error


class FakeSampler:
    def __init__(self):
        self.samples = 0

    def sample(self):
        self.samples += 1
        return MetricSnapshot(
            cpu_percent_per_core   = [12.5, 3.0],
            used_ram_bytes         = 2048,
            total_ram_bytes        = 8192,
            used_disk_bytes        = [100],
            total_disk_bytes       = [1000],
            network_bytes_sent     = 10,
            network_bytes_received = 20,
            captured_at            = datetime(2024, 1, 1, tzinfo=timezone.utc),
        )


_CLOSED = object()


class FakeConnection:
    """
    Stand-in for a websockets sync ClientConnection.
    recv() hands out queued frames and raises OSError once the script is
    exhausted (or immediately after close()).
    """

    def __init__(self, frames=(), block_when_empty: bool = False):
        self.sent: list[str] = []
        self.closed = False
        self.fail_sends = False
        self.block_when_empty = block_when_empty
        self._frames: queue.Queue = queue.Queue()
        for frame in frames:
            self._frames.put(frame)
        self.sent_event = threading.Event()

    def feed(self, frame):
        self._frames.put(frame)

    def recv(self):
        if self.closed:
            raise OSError("connection closed")
        if not self.block_when_empty and self._frames.empty():
            raise OSError("connection reset by peer")
        frame = self._frames.get()
        if frame is _CLOSED:
            raise OSError("connection closed")
        return frame

    def send(self, text):
        if self.fail_sends:
            raise OSError("broken pipe")
        self.sent.append(text)
        self.sent_event.set()

    def close(self):
        self.closed = True
        self._frames.put(_CLOSED)


@pytest.fixture
def resources():
    return FakeResources()


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def sampler():
    return FakeSampler()
