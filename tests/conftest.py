"""Shared fixtures for sysdash tests."""

import pytest

from sysdash.errors import ProviderError
from sysdash.models import DiskReading, HostReading, MemoryReading, TemperatureReading

GB = 1024**3


class StubProvider:
    """Deterministic provider returning fixed readings."""

    def __init__(
        self,
        cpus: list[float] | None = None,
        temps: list[TemperatureReading] | None = None,
        hostname: str = "host1",
        uptime: int = 3661,
    ) -> None:
        self.cpus = [25.4, 76.9] if cpus is None else cpus
        self.temps = [] if temps is None else temps
        self.hostname = hostname
        self.uptime = uptime
        self.calls: list[str] = []
        self.fail_cpu_calls: set[int] = set()  # 1-based call numbers that fail
        self._cpu_calls = 0

    def virtual_memory(self) -> MemoryReading:
        self.calls.append("virtual_memory")
        return MemoryReading(total=16 * GB, used=8 * GB, percent=50.0)

    def cpu_percent(self) -> list[float]:
        self.calls.append("cpu_percent")
        self._cpu_calls += 1
        if self._cpu_calls in self.fail_cpu_calls:
            raise ProviderError("cpu_percent", PermissionError("denied"))
        return list(self.cpus)

    def disk_usage(self, path: str) -> DiskReading:
        self.calls.append("disk_usage")
        return DiskReading(path=path, total=500 * GB, used=250 * GB, percent=50.0)

    def temperatures(self) -> list[TemperatureReading]:
        self.calls.append("temperatures")
        return list(self.temps)

    def host_info(self) -> HostReading:
        self.calls.append("host_info")
        return HostReading(hostname=self.hostname, os_name="linux", uptime_seconds=self.uptime)


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()


def next_data_event(events, limit: int = 200) -> str:
    """Advance an event stream past keep-alive comments to the next data event."""
    for _ in range(limit):
        event = next(events)
        if isinstance(event, bytes):
            event = event.decode("utf-8")
        if event.startswith("data: "):
            return event
    raise AssertionError(f"no data event within {limit} frames")
