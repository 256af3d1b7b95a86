"""Runtime configuration for the run command."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT_SECONDS = 600


@dataclass(slots=True)
class Settings:
    """Target cluster, service and local definition paths."""

    region: str | None = None
    profile: str | None = None
    cluster: str = "default"
    service: str = ""
    service_definition_path: str | None = None
    task_definition_path: str | None = None
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment; unset values fall back to defaults."""

        return cls(
            region=os.getenv("ECSRUN_REGION") or os.getenv("AWS_REGION") or None,
            profile=os.getenv("ECSRUN_PROFILE") or None,
            cluster=os.getenv("ECSRUN_CLUSTER", "default"),
            service=os.getenv("ECSRUN_SERVICE", ""),
            service_definition_path=os.getenv("ECSRUN_SERVICE_DEFINITION") or None,
            task_definition_path=os.getenv("ECSRUN_TASK_DEFINITION") or None,
            timeout_seconds=_env_int("ECSRUN_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        )

    def validate(self) -> None:
        """Raise configuration error for values the run cannot work with."""

        if not self.cluster.strip():
            raise ValueError("ECSRUN_CLUSTER must not be empty.")
        if self.timeout_seconds <= 0:
            raise ValueError("ECSRUN_TIMEOUT_SECONDS must be > 0.")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error
