"""Local JSON definition files and small ECS identifier helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Fields present in describe_task_definition output that register_task_definition rejects.
TASK_DEFINITION_READ_ONLY_FIELDS: tuple[str, ...] = (
    "taskDefinitionArn",
    "revision",
    "status",
    "requiresAttributes",
    "compatibilities",
    "registeredAt",
    "registeredBy",
    "deregisteredAt",
)


def read_definition_file(path: str | Path) -> str:
    """Read a definition file; OSError propagates to the caller."""

    return Path(path).read_text("utf-8")


def parse_definition(raw: str, source: str = "<inline>") -> dict[str, Any]:
    """Parse a JSON object, raising ValueError with the source name on failure."""

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as error:
        raise ValueError(f"invalid JSON in {source}: {error}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object in {source}")
    return payload


def load_task_definition(path: str | Path) -> dict[str, Any]:
    """Load a task definition body ready for register_task_definition."""

    payload = parse_definition(read_definition_file(path), source=str(path))
    # describe_task_definition output can be saved as-is
    payload = _unwrap(payload, "taskDefinition", str(path))
    if not isinstance(payload.get("family"), str) or not payload["family"]:
        raise ValueError(f"task definition {path} has no family")
    return {
        key: value
        for key, value in payload.items()
        if key not in TASK_DEFINITION_READ_ONLY_FIELDS
    }


def load_service_definition(path: str | Path) -> dict[str, Any]:
    payload = parse_definition(read_definition_file(path), source=str(path))
    return _unwrap(payload, "service", str(path))


def _unwrap(payload: dict[str, Any], key: str, source: str) -> dict[str, Any]:
    unwrapped = payload.get(key, payload)
    if not isinstance(unwrapped, dict):
        raise ValueError(f"expected a JSON object under {key!r} in {source}")
    return unwrapped


def parse_tags(raw: str) -> list[dict[str, str]]:
    """Parse `Key=Value,Key2=Value2` into ECS tag dicts, keeping input order."""

    tags: list[dict[str, str]] = []
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        if "=" not in token:
            raise ValueError(f"invalid tag format {token!r}, expected Key=Value")
        key, value = token.split("=", 1)
        if not key:
            raise ValueError(f"invalid tag format {token!r}, key is empty")
        tags.append({"key": key, "value": value})
    return tags


def arn_to_name(arn: str) -> str:
    """Return the last path segment of an ARN (`family:rev`, task id, service name)."""

    return arn.rsplit("/", 1)[-1]


def family_of(task_definition_arn: str) -> str:
    return arn_to_name(task_definition_arn).split(":", 1)[0]


def revision_of(task_definition_arn: str) -> int:
    _, _, revision = arn_to_name(task_definition_arn).partition(":")
    try:
        return int(revision)
    except ValueError:
        return 0
