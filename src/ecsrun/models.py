"""Domain models for the run-and-observe flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ecsrun.definitions import arn_to_name
from ecsrun.errors import ResolutionError

AWSLOGS_DRIVER = "awslogs"
AWSLOGS_STREAM_PREFIX = "awslogs-stream-prefix"
AWSLOGS_GROUP = "awslogs-group"


class ResolutionMode(str, Enum):
    """How the task definition to run is chosen."""

    REGISTER = "register"
    LATEST = "latest"
    SKIP = "skip"


class PropagationMode(str, Enum):
    """Tag propagation strategy for the launched task."""

    NONE = "none"
    SERVICE = "service"
    PASSTHROUGH = "passthrough"


class WaitMode(str, Enum):
    """Lifecycle phase the run waits for."""

    UNTIL_STOPPED = "stopped"
    UNTIL_RUNNING = "running"


@dataclass(frozen=True, slots=True)
class TagPropagation:
    """Propagation mode plus the literal sent to ECS for passthrough."""

    mode: PropagationMode = PropagationMode.NONE
    value: str | None = None

    @classmethod
    def parse(cls, raw: str | None) -> TagPropagation:
        value = (raw or "").strip()
        if not value:
            return cls(PropagationMode.NONE)
        if value == "SERVICE":
            return cls(PropagationMode.SERVICE)
        return cls(PropagationMode.PASSTHROUGH, value)


@dataclass(frozen=True, slots=True)
class RunOptions:
    """User intent for one `run` invocation."""

    resolution: ResolutionMode = ResolutionMode.REGISTER
    task_definition_path: str | None = None
    revision: int = 0
    overrides: str | None = None
    overrides_file: str | None = None
    count: int = 1
    tags: str = ""
    propagation: TagPropagation = field(default_factory=TagPropagation)
    dry_run: bool = False
    no_wait: bool = False
    wait_mode: WaitMode = WaitMode.UNTIL_STOPPED
    watch_container: str | None = None

    @property
    def dry_run_suffix(self) -> str:
        return " (DRY RUN)" if self.dry_run else ""


@dataclass(frozen=True, slots=True)
class TaskHandle:
    """Task returned by a successful run_task call."""

    task_arn: str
    cluster_arn: str | None
    task_definition_arn: str | None
    task: dict[str, Any]

    @classmethod
    def from_response(cls, task: dict[str, Any]) -> TaskHandle:
        return cls(
            task_arn=task["taskArn"],
            cluster_arn=task.get("clusterArn"),
            task_definition_arn=task.get("taskDefinitionArn"),
            task=task,
        )

    @property
    def task_id(self) -> str:
        return arn_to_name(self.task_arn)


@dataclass(frozen=True, slots=True)
class WatchTarget:
    """Container whose logs are tailed and whose exit code decides the outcome."""

    name: str
    container: dict[str, Any]

    @classmethod
    def select(cls, task_definition: dict[str, Any], name: str | None) -> WatchTarget:
        """Pick the named container, or the first one when no name is given."""

        containers = task_definition.get("containerDefinitions") or []
        if not containers:
            raise ResolutionError("task definition has no container definitions")
        if not name:
            return cls(name=containers[0]["name"], container=containers[0])
        for container in containers:
            if container.get("name") == name:
                return cls(name=name, container=container)
        raise ResolutionError(f"container {name!r} not found in task definition")

    @property
    def log_driver(self) -> str | None:
        return (self.container.get("logConfiguration") or {}).get("logDriver")

    @property
    def log_options(self) -> dict[str, str]:
        return (self.container.get("logConfiguration") or {}).get("options") or {}

    @property
    def streams_logs(self) -> bool:
        return self.log_driver == AWSLOGS_DRIVER and bool(
            self.log_options.get(AWSLOGS_STREAM_PREFIX),
        )

    def log_location(self, handle: TaskHandle) -> tuple[str, str]:
        """Return (log group, log stream) for this container in the given task."""

        options = self.log_options
        stream = "/".join([options[AWSLOGS_STREAM_PREFIX], self.name, handle.task_id])
        return options.get(AWSLOGS_GROUP, ""), stream


@dataclass(slots=True)
class LogCursor:
    """Continuation state for incremental log fetches."""

    start_time_ms: int
    next_token: str | None = None

    def advance(self, token: str | None) -> None:
        if token:
            self.next_token = token
