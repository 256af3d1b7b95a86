"""Controller for the `run` CLI command."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ecsrun.aws import ProgressCallback, build_context
from ecsrun.config import Settings
from ecsrun.models import ResolutionMode, RunOptions, TagPropagation, WaitMode
from ecsrun.runner import run

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunTaskCommand:
    """CLI input for one task run."""

    task_definition_path: str | None = None
    revision: int = 0
    skip_task_definition: bool = False
    latest_task_definition: bool = False
    dry_run: bool = False
    no_wait: bool = False
    wait_until: str = WaitMode.UNTIL_STOPPED.value
    overrides: str | None = None
    overrides_file: str | None = None
    count: int = 1
    tags: str = ""
    propagate_tags: str = ""
    watch_container: str | None = None
    region: str | None = None
    profile: str | None = None
    cluster: str | None = None
    service: str | None = None
    service_definition_path: str | None = None
    timeout_seconds: int | None = None


class RunCliController:
    """Turns CLI input into settings, a run context and run options."""

    def run_task(self, command: RunTaskCommand, *, on_progress: ProgressCallback) -> None:
        settings = _settings(command)
        settings.validate()
        context = build_context(settings, on_progress=on_progress)
        run(_run_options(command), context)


def _settings(command: RunTaskCommand) -> Settings:
    settings = Settings.from_env()
    if command.region:
        settings.region = command.region
    if command.profile:
        settings.profile = command.profile
    if command.cluster:
        settings.cluster = command.cluster
    if command.service is not None:
        settings.service = command.service
    if command.service_definition_path:
        settings.service_definition_path = command.service_definition_path
    if command.timeout_seconds is not None:
        settings.timeout_seconds = command.timeout_seconds
    if command.task_definition_path:
        settings.task_definition_path = command.task_definition_path
    logger.debug("Effective settings: %s", settings)
    return settings


def _run_options(command: RunTaskCommand) -> RunOptions:
    if command.skip_task_definition:
        resolution = ResolutionMode.SKIP
    elif command.latest_task_definition:
        resolution = ResolutionMode.LATEST
    else:
        resolution = ResolutionMode.REGISTER
    return RunOptions(
        resolution=resolution,
        task_definition_path=command.task_definition_path,
        revision=command.revision,
        overrides=command.overrides,
        overrides_file=command.overrides_file,
        count=command.count,
        tags=command.tags,
        propagation=TagPropagation.parse(command.propagate_tags),
        dry_run=command.dry_run,
        no_wait=command.no_wait,
        wait_mode=WaitMode(command.wait_until),
        watch_container=command.watch_container,
    )
