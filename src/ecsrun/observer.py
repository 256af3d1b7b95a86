"""Wait for a launched task while tailing one container's CloudWatch logs."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from ecsrun.aws import RunContext
from ecsrun.errors import TaskStoppedError, WaitError, WaitTimeoutError
from ecsrun.models import LogCursor, TaskHandle, WaitMode, WatchTarget

logger = logging.getLogger(__name__)

STATE_POLL_DELAY_SECONDS = 6
LOG_STREAM_GRACE_SECONDS = 3.0
LOG_POLL_INTERVAL_SECONDS = 5.0
LOG_TAILER_JOIN_SECONDS = 10.0

_WAITERS = {
    WaitMode.UNTIL_RUNNING: "tasks_running",
    WaitMode.UNTIL_STOPPED: "tasks_stopped",
}


def waiter_attempts(timeout_seconds: int, delay_seconds: int) -> int:
    """Attempts needed to cover timeout at a fixed delay, plus one of margin."""

    attempts = timeout_seconds // delay_seconds + 1
    if timeout_seconds % delay_seconds:
        attempts += 1
    return attempts


class LogTailer:
    """Fetch new log events on a fixed interval until the stop event is set.

    Fetch errors are logged and skipped; the cursor then stays where it was
    and the next tick retries from there.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        logs_client: Any,
        log_group: str,
        log_stream: str,
        cursor: LogCursor,
        stop: threading.Event,
        emit: Callable[[str], None],
        interval_seconds: float = LOG_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.logs_client = logs_client
        self.log_group = log_group
        self.log_stream = log_stream
        self.cursor = cursor
        self.interval_seconds = interval_seconds
        self._stop = stop
        self._emit = emit

    def run(self) -> None:
        while not self._stop.wait(timeout=self.interval_seconds):
            self.poll_once()

    def poll_once(self) -> int:
        """Fetch one page of events after the cursor; returns the number emitted."""

        request: dict[str, Any] = {
            "logGroupName": self.log_group,
            "logStreamName": self.log_stream,
            "startTime": self.cursor.start_time_ms,
            "startFromHead": True,
        }
        if self.cursor.next_token:
            request["nextToken"] = self.cursor.next_token
        try:
            response = self.logs_client.get_log_events(**request)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Failed to get log events from %s: %s", self.log_stream, exc)
            return 0

        events = response.get("events") or []
        for event in events:
            timestamp = datetime.fromtimestamp(event["timestamp"] / 1000).astimezone()
            self._emit(f"{timestamp.isoformat(timespec='seconds')} {event['message']}")
        self.cursor.advance(response.get("nextForwardToken"))
        return len(events)


class TaskObserver:
    """Poll a task until the wait condition holds, tailing logs alongside."""

    def __init__(
        self,
        context: RunContext,
        *,
        poll_delay_seconds: int = STATE_POLL_DELAY_SECONDS,
        log_grace_seconds: float = LOG_STREAM_GRACE_SECONDS,
        log_interval_seconds: float = LOG_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.context = context
        self.poll_delay_seconds = poll_delay_seconds
        self.log_grace_seconds = log_grace_seconds
        self.log_interval_seconds = log_interval_seconds

    def observe(
        self,
        handle: TaskHandle,
        watch: WatchTarget,
        started_at: datetime,
        wait_mode: WaitMode,
    ) -> None:
        self.context.progress("Waiting for run task...(it may take a while)")
        if not watch.streams_logs:
            self.context.progress("awslogs not configured")
            self.wait_task(handle, wait_mode)
            return

        self.context.progress(f"Watching container: {watch.name}")
        log_group, log_stream = watch.log_location(handle)
        stop = threading.Event()
        # the log stream is created shortly after the container starts
        stop.wait(timeout=self.log_grace_seconds)

        tailer = LogTailer(
            logs_client=self.context.logs,
            log_group=log_group,
            log_stream=log_stream,
            cursor=LogCursor(start_time_ms=int(started_at.timestamp() * 1000)),
            stop=stop,
            emit=self.context.on_progress,
            interval_seconds=self.log_interval_seconds,
        )
        thread = threading.Thread(target=tailer.run, daemon=True, name="ecsrun-log-tailer")
        thread.start()
        try:
            self.wait_task(handle, wait_mode)
        finally:
            stop.set()
            thread.join(timeout=LOG_TAILER_JOIN_SECONDS)

    def wait_task(self, handle: TaskHandle, wait_mode: WaitMode) -> None:
        """Block on the ECS waiter for wait_mode within the configured timeout."""

        attempts = waiter_attempts(self.context.timeout_seconds, self.poll_delay_seconds)
        task_id = handle.task_id
        self.context.progress(f"Waiting for task ID {task_id} until {wait_mode.value}")
        waiter = self.context.ecs.get_waiter(_WAITERS[wait_mode])
        try:
            waiter.wait(
                cluster=self.context.cluster,
                tasks=[handle.task_arn],
                WaiterConfig={"Delay": self.poll_delay_seconds, "MaxAttempts": attempts},
            )
        except WaiterError as error:
            raise _waiter_failure(error, task_id, wait_mode, attempts) from error
        except (BotoCoreError, ClientError) as error:
            raise WaitError(f"failed to wait for task ID {task_id}: {error}") from error

        if wait_mode is WaitMode.UNTIL_RUNNING:
            self.context.progress(f"Task ID {task_id} is running")
        else:
            self.context.progress(f"Task ID {task_id} is stopped")


def _waiter_failure(
    error: WaiterError,
    task_id: str,
    wait_mode: WaitMode,
    attempts: int,
) -> WaitError:
    reason = str(error.kwargs.get("reason", error))
    if reason.startswith("Max attempts exceeded"):
        return WaitTimeoutError(
            f"task ID {task_id} did not become {wait_mode.value} after {attempts} attempts",
        )
    if "terminal failure state" in reason:
        return TaskStoppedError(
            f"task ID {task_id} stopped before it became {wait_mode.value}: {reason}",
        )
    return WaitError(f"failed to wait for task ID {task_id}: {reason}")
