"""Metrics providers for sysdash."""

import platform
import socket
import time
from collections.abc import Callable
from typing import Protocol, TypeVar

import psutil

from sysdash.errors import ProviderError
from sysdash.models import DiskReading, HostReading, MemoryReading, TemperatureReading

T = TypeVar("T")


class MetricsProvider(Protocol):
    """Blocking queries for raw host metrics. Each query may fail independently."""

    def virtual_memory(self) -> MemoryReading: ...

    def cpu_percent(self) -> list[float]: ...

    def disk_usage(self, path: str) -> DiskReading: ...

    def temperatures(self) -> list[TemperatureReading]: ...

    def host_info(self) -> HostReading: ...


def _query(name: str, func: Callable[[], T]) -> T:
    """Run a psutil query, turning its failures into ProviderError."""
    try:
        return func()
    except (psutil.Error, OSError) as exc:
        raise ProviderError(name, exc) from exc


def sensor_label(chip: str, sensor: str) -> str:
    """Build a stable label such as 'coretemp_package_id_0'."""
    label = f"{chip}_{sensor}" if sensor else chip
    return label.strip().lower().replace(" ", "_")


class PsutilProvider:
    """
    Metrics provider backed by psutil.

    cpu_percent() blocks for cpu_interval seconds so that every reading covers
    a fresh sampling window instead of the time since the previous call.
    """

    def __init__(self, cpu_interval: float = 1.0) -> None:
        """
        Initialize the PsutilProvider.

        Args:
            cpu_interval: CPU sampling window in seconds. Default 1.0s.
        """
        self._cpu_interval = max(0.0, cpu_interval)

    @property
    def cpu_interval(self) -> float:
        """Get the CPU sampling window."""
        return self._cpu_interval

    def virtual_memory(self) -> MemoryReading:
        mem = _query("virtual_memory", psutil.virtual_memory)
        return MemoryReading(total=mem.total, used=mem.used, percent=mem.percent)

    def cpu_percent(self) -> list[float]:
        return _query(
            "cpu_percent",
            lambda: psutil.cpu_percent(interval=self._cpu_interval, percpu=True),
        )

    def disk_usage(self, path: str) -> DiskReading:
        usage = _query("disk_usage", lambda: psutil.disk_usage(path))
        return DiskReading(path=path, total=usage.total, used=usage.used, percent=usage.percent)

    def temperatures(self) -> list[TemperatureReading]:
        # Only Linux and FreeBSD builds of psutil expose sensors
        sensors_temperatures = getattr(psutil, "sensors_temperatures", None)
        if sensors_temperatures is None:
            return []

        chips = _query("sensors_temperatures", sensors_temperatures) or {}
        readings: list[TemperatureReading] = []
        for chip, entries in chips.items():
            for entry in entries:
                readings.append(
                    TemperatureReading(label=sensor_label(chip, entry.label), celsius=entry.current)
                )
        return readings

    def host_info(self) -> HostReading:
        boot_time = _query("boot_time", psutil.boot_time)
        uptime = max(0, int(time.time() - boot_time))
        return HostReading(
            hostname=socket.gethostname(),
            os_name=platform.system().lower(),
            uptime_seconds=uptime,
        )
