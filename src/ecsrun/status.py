"""Final read-only inspection of a finished (or running) task."""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from ecsrun.aws import RunContext
from ecsrun.errors import TaskFailedError
from ecsrun.models import TaskHandle, WatchTarget


def describe_task_status(context: RunContext, handle: TaskHandle, watch: WatchTarget) -> None:
    """Report task status; a non-zero exit code of the watch container fails the run."""

    try:
        response = context.ecs.describe_tasks(cluster=context.cluster, tasks=[handle.task_arn])
    except (BotoCoreError, ClientError) as error:
        raise TaskFailedError(f"failed to describe task {handle.task_id}: {error}") from error

    tasks = response.get("tasks") or []
    if not tasks:
        failures = response.get("failures") or [{}]
        reason = failures[0].get("reason", "MISSING")
        raise TaskFailedError(f"task {handle.task_id} not found: {reason}")

    task = tasks[0]
    context.progress(f"Task ID {handle.task_id} LastStatus: {task.get('lastStatus')}")
    if task.get("stopCode"):
        context.progress(f"StopCode: {task['stopCode']}")
    if task.get("stoppedReason"):
        context.progress(f"StoppedReason: {task['stoppedReason']}")

    for container in task.get("containers") or []:
        if container.get("name") != watch.name:
            continue
        if container.get("reason"):
            context.progress(f"Container {watch.name} reason: {container['reason']}")
        exit_code = container.get("exitCode")
        if exit_code is None:
            if container.get("reason"):
                raise TaskFailedError(f"container {watch.name} reason: {container['reason']}")
            return
        context.progress(f"Container {watch.name} exit code: {exit_code}")
        if exit_code != 0:
            raise TaskFailedError(f"container {watch.name} exit code: {exit_code}")
