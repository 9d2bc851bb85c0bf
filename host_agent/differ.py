"""
Resource Differ
===============

Detects container and image changes on the host without the controller
having to poll for them.

Every `interval` seconds:
  1. List current containers and images (Docker)
  2. Compare with the inventory seen on the previous tick, keyed by hash
  3. Queue one event per change:
       container new hash             → AddedContainer
       container status/resources     → UpdatedContainer
       container hash gone            → RemovedContainer
       image new hash / hash gone     → AddedImage / RemovedImage
  4. Replace the previous inventory with the current one

Detection is best-effort: a container created and removed between two ticks
is never reported, and only status/resources drift counts as an update.

Ticks run on a single thread with a fixed delay between them, so a slow
Docker call delays the next pass instead of overlapping it. The loop stops
when the shared stop event is set.
"""

from __future__ import annotations
import logging
import threading
from typing import Mapping, Optional, Sequence

from .errors import ResourceManagerError
from .messages import OutboundKind, OutboundMessage
from .models import ContainerRecord, ImageRecord
from .outbound_queue import OutboundQueue

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 10.0


# ─── Pure diffing ─────────────────────────────────────────────────────────────

def index_by_hash(records: Sequence[ContainerRecord | ImageRecord]) -> dict:
    return {record.hash: record for record in records}


def diff_containers(
    previous: Mapping[str, ContainerRecord],
    current:  Mapping[str, ContainerRecord],
) -> list[OutboundMessage]:
    events = []
    for key, ctr in current.items():
        prev = previous.get(key)
        if prev is None:
            events.append(OutboundMessage.for_record(OutboundKind.ADDED_CONTAINER, ctr))
        elif prev.status != ctr.status or prev.resources != ctr.resources:
            events.append(OutboundMessage.for_record(OutboundKind.UPDATED_CONTAINER, ctr))

    for key, prev in previous.items():
        if key not in current:
            events.append(OutboundMessage.for_record(OutboundKind.REMOVED_CONTAINER, prev))
    return events


def diff_images(
    previous: Mapping[str, ImageRecord],
    current:  Mapping[str, ImageRecord],
) -> list[OutboundMessage]:
    events = [
        OutboundMessage.for_record(OutboundKind.ADDED_IMAGE, img)
        for key, img in current.items() if key not in previous
    ]
    events += [
        OutboundMessage.for_record(OutboundKind.REMOVED_IMAGE, img)
        for key, img in previous.items() if key not in current
    ]
    return events


# ─── Timer loop ───────────────────────────────────────────────────────────────

class ResourceDiffer:
    def __init__(
        self,
        resources,
        queue:    OutboundQueue,
        interval: float = DEFAULT_INTERVAL,
    ):
        self.resources = resources
        self.queue     = queue
        self.interval  = interval
        self.error: Optional[Exception] = None

        self._previous_containers: dict[str, ContainerRecord] = {}
        self._previous_images:     dict[str, ImageRecord]     = {}

    @property
    def previous_containers(self) -> dict[str, ContainerRecord]:
        return dict(self._previous_containers)

    @property
    def previous_images(self) -> dict[str, ImageRecord]:
        return dict(self._previous_images)

    def seed(self) -> None:
        """Take the baseline inventory. Raises ResourceManagerError."""
        self._previous_containers = index_by_hash(self.resources.list_containers())
        self._previous_images     = index_by_hash(self.resources.list_images())
        log.info(
            f"[differ] Baseline: {len(self._previous_containers)} container(s), "
            f"{len(self._previous_images)} image(s)"
        )

    def tick(self) -> list[OutboundMessage]:
        """
        Run one comparison pass and queue its events.
        Returns the queued events. Raises ResourceManagerError.
        """
        current_containers = index_by_hash(self.resources.list_containers())
        events = diff_containers(self._previous_containers, current_containers)
        self._enqueue(events)
        self._previous_containers = current_containers

        current_images = index_by_hash(self.resources.list_images())
        image_events   = diff_images(self._previous_images, current_images)
        self._enqueue(image_events)
        self._previous_images = current_images

        events += image_events

        if events:
            log.info(f"[differ] Queued {len(events)} change event(s), queue size {self.queue.size()}")
        return events

    def _enqueue(self, events: list[OutboundMessage]) -> None:
        for event in events:
            self.queue.push(event)

    def run(self, stop_event: threading.Event) -> None:
        """
        Tick every `interval` seconds until stop_event is set.
        An inventory failure, or any other error in a tick, is fatal: it is
        recorded in `error` and the stop event is set so the rest of the agent
        shuts down with it.
        """
        log.info(f"[differ] Watching Docker every {self.interval}s")
        while not stop_event.wait(self.interval):
            try:
                self.tick()
            except ResourceManagerError as e:
                log.critical(f"[differ] Inventory failed, stopping agent: {e}")
                self.error = e
                stop_event.set()
                return
            except Exception as e:
                log.critical(f"[differ] Tick crashed, stopping agent: {e!r}")
                self.error = e
                stop_event.set()
                return
        log.info("[differ] Stopped")
