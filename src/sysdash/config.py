"""Configuration for sysdash, read from SYSDASH_* environment variables."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from sysdash.stream import FailurePolicy

ENV_PREFIX = "SYSDASH_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True, frozen=True)
class Settings:
    """Runtime settings. Defaults reproduce the fixed 1 second cadence on port 8080."""

    host: str = "0.0.0.0"
    port: int = 8080
    disk_path: str = "/"
    tick_interval: float = 1.0  # Sleep between ticks (seconds)
    cpu_interval: float = 1.0  # CPU sampling window (seconds)
    failure_policy: FailurePolicy = FailurePolicy.SKIP
    write_timeout: float = 10.0  # Socket timeout for stalled clients (seconds)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from the environment.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value is not None and value.strip() else None

        def number(name: str, convert, default, minimum):
            raw = get(name)
            if raw is None:
                return default
            try:
                value = convert(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
            if value < minimum:
                raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {raw!r}")
            return value

        port = number("PORT", int, defaults.port, 0)
        if port > 65535:
            raise ValueError(f"{ENV_PREFIX}PORT must be <= 65535, got {port}")

        policy_raw = get("FAILURE_POLICY")
        try:
            policy = FailurePolicy(policy_raw.lower()) if policy_raw else defaults.failure_policy
        except ValueError:
            choices = ", ".join(p.value for p in FailurePolicy)
            raise ValueError(
                f"{ENV_PREFIX}FAILURE_POLICY must be one of {choices}, got {policy_raw!r}"
            ) from None

        log_level = (get("LOG_LEVEL") or defaults.log_level).upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"{ENV_PREFIX}LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

        return cls(
            host=get("HOST") or defaults.host,
            port=port,
            disk_path=get("DISK_PATH") or defaults.disk_path,
            tick_interval=number("TICK_INTERVAL", float, defaults.tick_interval, 0.1),
            cpu_interval=number("CPU_INTERVAL", float, defaults.cpu_interval, 0.0),
            failure_policy=policy,
            write_timeout=number("WRITE_TIMEOUT", float, defaults.write_timeout, 0.1),
            log_level=log_level,
        )
