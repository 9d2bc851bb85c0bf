"""
Telemetry Sampler
=================

Host-level snapshot via psutil:
  - CPU utilization per core (1s window)
  - RAM used / total
  - Disk used / total for the configured mount point
  - Network bytes sent / received since boot

A sub-metric that cannot be read is logged and reported as -1 (CPU as an
empty list); the snapshot as a whole is always sendable.
"""

from __future__ import annotations
import logging
from datetime import datetime, timezone

import psutil  # type: ignore

from .models import METRIC_UNAVAILABLE, MetricSnapshot

log = logging.getLogger(__name__)


class TelemetrySampler:
    def __init__(self, disk_path: str = "/", cpu_interval: float = 1.0):
        self.disk_path    = disk_path
        self.cpu_interval = cpu_interval

    def sample(self) -> MetricSnapshot:
        used_ram, total_ram   = self._collect_ram()
        used_disk, total_disk = self._collect_disk()
        sent, received        = self._collect_network()

        return MetricSnapshot(
            cpu_percent_per_core   = self._collect_cpu(),
            used_ram_bytes         = used_ram,
            total_ram_bytes        = total_ram,
            used_disk_bytes        = [used_disk],
            total_disk_bytes       = [total_disk],
            network_bytes_sent     = sent,
            network_bytes_received = received,
            captured_at            = datetime.now(timezone.utc),
        )

    def _collect_cpu(self) -> list[float]:
        try:
            return [float(p) for p in psutil.cpu_percent(interval=self.cpu_interval, percpu=True)]
        except Exception as e:
            log.warning(f"[telemetry] CPU usage unavailable: {e}")
            return []

    def _collect_ram(self) -> tuple[int, int]:
        try:
            mem = psutil.virtual_memory()
            return int(mem.used), int(mem.total)
        except Exception as e:
            log.warning(f"[telemetry] RAM usage unavailable: {e}")
            return METRIC_UNAVAILABLE, METRIC_UNAVAILABLE

    def _collect_disk(self) -> tuple[int, int]:
        try:
            usage = psutil.disk_usage(self.disk_path)
            return int(usage.used), int(usage.total)
        except Exception as e:
            log.warning(f"[telemetry] Disk usage of {self.disk_path} unavailable: {e}")
            return METRIC_UNAVAILABLE, METRIC_UNAVAILABLE

    def _collect_network(self) -> tuple[int, int]:
        try:
            net = psutil.net_io_counters()
            # None on hosts without network interfaces
            if net is None:
                return METRIC_UNAVAILABLE, METRIC_UNAVAILABLE
            return int(net.bytes_sent), int(net.bytes_recv)
        except Exception as e:
            log.warning(f"[telemetry] Network stats unavailable: {e}")
            return METRIC_UNAVAILABLE, METRIC_UNAVAILABLE
