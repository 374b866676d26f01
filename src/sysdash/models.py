"""Data models for sysdash."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class MemoryReading:
    """Raw virtual memory usage as reported by the provider."""

    total: int  # Bytes
    used: int  # Bytes
    percent: float


@dataclass(slots=True, frozen=True)
class DiskReading:
    """Raw disk usage for a mount point."""

    path: str
    total: int  # Bytes
    used: int  # Bytes
    percent: float


@dataclass(slots=True, frozen=True)
class HostReading:
    """Host identity and uptime."""

    hostname: str
    os_name: str  # 'linux', 'darwin', 'windows', etc.
    uptime_seconds: int


@dataclass(slots=True, frozen=True)
class TemperatureReading:
    """One temperature sensor reading."""

    label: str
    celsius: float


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable, display-ready set of host metrics for a single tick."""

    total_disk_gb: float
    used_disk_gb: float
    disk_used_percent: float  # 0.0 - 100.0
    total_memory_gb: float
    used_memory_gb: float
    memory_used_percent: float  # 0.0 - 100.0
    cpu_loads: tuple[float, ...]  # One per logical core, provider order
    hostname: str
    uptime: str  # HH:MM:SS, hours unbounded
    os_name: str
    temperatures: tuple[TemperatureReading, ...]
