"""Entry point tying resolution, submission and observation together."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ecsrun.aws import RunContext
from ecsrun.definitions import parse_definition, parse_tags, read_definition_file
from ecsrun.errors import InputError, ResolutionError, SubmissionError, WaitError
from ecsrun.models import RunOptions, WatchTarget
from ecsrun.observer import TaskObserver
from ecsrun.resolver import TaskReferenceResolver
from ecsrun.status import describe_task_status
from ecsrun.submitter import RunSubmitter

logger = logging.getLogger(__name__)


def run(
    options: RunOptions,
    context: RunContext,
    *,
    observer: TaskObserver | None = None,
) -> None:
    """Run one task and, unless told otherwise, wait for it and check its status."""

    context.progress(f"Running task{options.dry_run_suffix}")
    overrides = load_overrides(options)
    logger.debug("Overrides: %s", json.dumps(overrides))
    try:
        tags = parse_tags(options.tags)
    except ValueError as error:
        raise InputError(f"invalid tags: {error}") from error

    task_definition = TaskReferenceResolver(context).resolve(options)
    context.progress(f"Task definition ARN: {task_definition}")
    if options.dry_run:
        context.progress("DRY RUN OK")
        return

    watch = WatchTarget.select(
        _describe_task_definition(context, task_definition),
        options.watch_container,
    )
    context.progress(f"Watch container: {watch.name}")

    started_at = datetime.now(tz=UTC)
    try:
        handle = RunSubmitter(context).submit(task_definition, overrides, options, tags=tags)
    except SubmissionError as error:
        raise SubmissionError(f"failed to run task: {error}") from error
    if options.no_wait:
        context.progress("Run task invoked")
        return

    observer = observer or TaskObserver(context)
    try:
        observer.observe(handle, watch, started_at, options.wait_mode)
    except WaitError as error:
        raise type(error)(f"failed to run task: {error}") from error
    describe_task_status(context, handle, watch)
    context.progress("Run task completed!")


def load_overrides(options: RunOptions) -> dict[str, Any]:
    """Parse overrides from inline JSON, else from the overrides file, else none."""

    if options.overrides:
        try:
            return parse_definition(options.overrides)
        except ValueError as error:
            raise InputError(f"invalid overrides: {error}") from error
    if options.overrides_file:
        path = options.overrides_file
        try:
            return parse_definition(read_definition_file(path), source=path)
        except (OSError, ValueError) as error:
            raise InputError(f"failed to read overrides-file {path}: {error}") from error
    return {}


def _describe_task_definition(context: RunContext, task_definition: str) -> dict[str, Any]:
    try:
        response = context.ecs.describe_task_definition(taskDefinition=task_definition)
    except (BotoCoreError, ClientError) as error:
        raise ResolutionError(
            f"failed to describe task definition {task_definition}: {error}",
        ) from error
    return response["taskDefinition"]
