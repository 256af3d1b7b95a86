"""Error taxonomy for the run command."""

from __future__ import annotations


class RunTaskError(RuntimeError):
    """Base error for a failed run; `phase` names where it failed."""

    phase = "run"


class InputError(RunTaskError):
    """Invalid overrides, tags, or unreadable local files."""

    phase = "input"


class ResolutionError(RunTaskError):
    """Task definition could not be resolved, loaded, or registered."""

    phase = "resolve"


class SubmissionError(RunTaskError):
    """run_task failed or reported a per-task failure."""

    phase = "submit"


class WaitError(RunTaskError):
    """Task did not reach the requested state."""

    phase = "wait"


class WaitTimeoutError(WaitError):
    """Polling attempts were exhausted."""


class TaskStoppedError(WaitError):
    """Task stopped while waiting for it to run."""


class TaskFailedError(RunTaskError):
    """Watched container exited with a non-zero code."""

    phase = "status"
