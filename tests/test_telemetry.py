from collections import namedtuple

from host_agent import telemetry
from host_agent.models import METRIC_UNAVAILABLE
from host_agent.telemetry import TelemetrySampler

Mem  = namedtuple("Mem", "used total")
Disk = namedtuple("Disk", "used total")
Net  = namedtuple("Net", "bytes_sent bytes_recv")


def test_sample(monkeypatch):
    monkeypatch.setattr(telemetry.psutil, "cpu_percent", lambda interval, percpu: [10.0, 20.0])
    monkeypatch.setattr(telemetry.psutil, "virtual_memory", lambda: Mem(1, 2))
    monkeypatch.setattr(telemetry.psutil, "disk_usage", lambda path: Disk(3, 4))
    monkeypatch.setattr(telemetry.psutil, "net_io_counters", lambda: Net(5, 6))

    snap = TelemetrySampler().sample()

    assert snap.cpu_percent_per_core == [10.0, 20.0]
    assert (snap.used_ram_bytes, snap.total_ram_bytes) == (1, 2)
    assert (snap.used_disk_bytes, snap.total_disk_bytes) == ([3], [4])
    assert (snap.network_bytes_sent, snap.network_bytes_received) == (5, 6)


def test_failed_sub_metrics_use_sentinel(monkeypatch):
    def broken(*args, **kwargs):
        raise OSError("unavailable")

    for name in ("cpu_percent", "virtual_memory", "disk_usage", "net_io_counters"):
        monkeypatch.setattr(telemetry.psutil, name, broken)

    snap = TelemetrySampler().sample()

    assert snap.cpu_percent_per_core == []
    assert snap.used_ram_bytes == METRIC_UNAVAILABLE
    assert snap.total_disk_bytes == [METRIC_UNAVAILABLE]
    assert snap.network_bytes_received == METRIC_UNAVAILABLE
    assert snap.to_wire()["UseRam"] == -1
