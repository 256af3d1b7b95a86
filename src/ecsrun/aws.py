"""boto3 clients and the explicit context passed through a run."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import boto3

from ecsrun.config import Settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


@dataclass(slots=True)
class RunContext:
    """Cluster identity, remote clients and deadline shared by every run phase."""

    cluster: str
    ecs: Any
    logs: Any
    service: str = ""
    service_definition_path: str | None = None
    task_definition_path: str | None = None
    timeout_seconds: int = 600
    on_progress: ProgressCallback = field(default=lambda _msg: None)

    def progress(self, message: str) -> None:
        logger.debug(message)
        self.on_progress(message)

    def describe_service(self) -> dict[str, Any]:
        """Describe the configured live service; raises LookupError if it is missing."""

        response = self.ecs.describe_services(cluster=self.cluster, services=[self.service])
        services = response.get("services") or []
        if not services:
            failures = response.get("failures") or [{}]
            reason = failures[0].get("reason", "MISSING")
            raise LookupError(f"service {self.service} not found in {self.cluster}: {reason}")
        return services[0]


def build_context(settings: Settings, *, on_progress: ProgressCallback) -> RunContext:
    """Create boto3 clients for the configured region/profile."""

    session = boto3.Session(region_name=settings.region, profile_name=settings.profile)
    logger.debug(
        "Using AWS region=%s profile=%s cluster=%s",
        session.region_name,
        settings.profile,
        settings.cluster,
    )
    return RunContext(
        cluster=settings.cluster,
        ecs=session.client("ecs"),
        logs=session.client("logs"),
        service=settings.service,
        service_definition_path=settings.service_definition_path,
        task_definition_path=settings.task_definition_path,
        timeout_seconds=settings.timeout_seconds,
        on_progress=on_progress,
    )
