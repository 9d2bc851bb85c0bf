"""
Docker Manager
==============

Inventory and lifecycle operations on the local Docker daemon, addressed by
container/image hash.

  list_images / list_containers   → records, raise ResourceManagerError
  start / stop / remove / remove_image
                                  → OperationResult(success, message)

The client is built from the environment (DOCKER_HOST etc.) on first use.
Removals are forced, like `docker rm -f` / `docker rmi -f`.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional

import docker  # type: ignore
from docker.errors import DockerException  # type: ignore
from requests.exceptions import RequestException

from .errors import ResourceManagerError
from .models import ContainerRecord, ImageRecord, OperationResult

log = logging.getLogger(__name__)

UNTAGGED_IMAGE = "<none>:<none>"


class DockerResourceManager:
    def __init__(self, client_factory: Callable = docker.from_env):
        self._client_factory = client_factory
        self._client: Optional[docker.DockerClient] = None

    def _docker(self):
        if self._client is None:
            try:
                self._client = self._client_factory()
            except (DockerException, RequestException) as e:
                raise ResourceManagerError(f"cannot create Docker client: {e}") from e
        return self._client

    # ─── Inventory ────────────────────────────────────────────────────────────

    def list_images(self) -> list[ImageRecord]:
        try:
            images = self._docker().images.list()
        except (DockerException, RequestException) as e:
            raise ResourceManagerError(f"cannot list images: {e}") from e

        return [
            ImageRecord(
                name       = img.tags[0] if img.tags else UNTAGGED_IMAGE,
                size_bytes = float(img.attrs.get("Size", 0)),
                hash       = img.id,
            )
            for img in images
        ]

    def list_containers(self) -> list[ContainerRecord]:
        try:
            # sparse: raw /containers/json entries, no per-container inspect
            containers = self._docker().containers.list(all=True, sparse=True)
        except (DockerException, RequestException) as e:
            raise ResourceManagerError(f"cannot list containers: {e}") from e

        records = []
        for ctr in containers:
            attrs = ctr.attrs
            records.append(ContainerRecord(
                name       = "".join(attrs.get("Names") or []),
                image_hash = attrs.get("ImageID", ""),
                status     = attrs.get("State", ""),
                hash       = attrs.get("Id") or ctr.id,
            ))
        return records

    # ─── Lifecycle ────────────────────────────────────────────────────────────

    def _operate(self, op: str, action: Callable) -> OperationResult:
        try:
            action(self._docker())
        except (DockerException, RequestException, ResourceManagerError) as e:
            log.error(f"[docker] {op} failed: {e}")
            return OperationResult(False, f"{op} failed: {e}")
        return OperationResult(True, "")

    def start(self, container_hash: str) -> OperationResult:
        return self._operate(
            f"start container {container_hash}",
            lambda cli: cli.api.start(container_hash),
        )

    def stop(self, container_hash: str) -> OperationResult:
        return self._operate(
            f"stop container {container_hash}",
            lambda cli: cli.api.stop(container_hash),
        )

    def remove(self, container_hash: str) -> OperationResult:
        return self._operate(
            f"remove container {container_hash}",
            lambda cli: cli.api.remove_container(container_hash, force=True),
        )

    def remove_image(self, image_hash: str) -> OperationResult:
        return self._operate(
            f"remove image {image_hash}",
            lambda cli: cli.api.remove_image(image_hash, force=True),
        )
