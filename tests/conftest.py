"""Shared test fixtures: in-memory stand-ins for the boto3 ECS and logs clients."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

import pytest

from ecsrun.aws import RunContext

CLUSTER = "test-cluster"
TASK_ARN = "arn:aws:ecs:us-east-1:123456789012:task/test-cluster/0123456789abcdef"
SERVICE_ARN = "arn:aws:ecs:us-east-1:123456789012:service/test-cluster/web"


def td_arn(family: str, revision: int) -> str:
    return f"arn:aws:ecs:us-east-1:123456789012:task-definition/{family}:{revision}"


class FakeWaiter:
    def __init__(self, client: FakeEcsClient, name: str) -> None:
        self.client = client
        self.name = name

    def wait(self, **kwargs: Any) -> None:
        self.client.calls.append((f"waiter:{self.name}", kwargs))
        if self.client.on_wait is not None:
            self.client.on_wait()
        error = self.client.waiter_errors.get(self.name)
        if error is not None:
            raise error


class FakePaginator:
    """Follows nextToken through the wrapped list call, like botocore paginators."""

    def __init__(self, method) -> None:
        self.method = method

    def paginate(self, **kwargs: Any):
        token = None
        while True:
            request = dict(kwargs) if token is None else {**kwargs, "nextToken": token}
            page = self.method(**request)
            yield page
            token = page.get("nextToken")
            if not token:
                return


class FakeEcsClient:
    """Records every call; responses are configured per test."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.services: dict[str, dict[str, Any]] = {}
        self.task_definitions: dict[str, dict[str, Any]] = {}
        self.service_tags: list[dict[str, str]] = []
        self.run_task_response: dict[str, Any] = {
            "tasks": [
                {
                    "taskArn": TASK_ARN,
                    "clusterArn": f"arn:aws:ecs:us-east-1:123456789012:cluster/{CLUSTER}",
                    "taskDefinitionArn": td_arn("app", 1),
                },
            ],
            "failures": [],
        }
        self.describe_tasks_response: dict[str, Any] = {
            "tasks": [
                {
                    "taskArn": TASK_ARN,
                    "lastStatus": "STOPPED",
                    "stopCode": "EssentialContainerExited",
                    "containers": [{"name": "app", "exitCode": 0}],
                },
            ],
        }
        self.waiter_errors: dict[str, Exception] = {}
        self.on_wait = None
        self.next_revision = 1
        self.list_pages: list[dict[str, Any]] | None = None

    def methods(self) -> list[str]:
        return [name for name, _ in self.calls]

    def describe_services(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("describe_services", kwargs))
        found = [self.services[name] for name in kwargs["services"] if name in self.services]
        failures = [
            {"arn": name, "reason": "MISSING"}
            for name in kwargs["services"]
            if name not in self.services
        ]
        return {"services": found, "failures": failures}

    def list_task_definitions(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("list_task_definitions", kwargs))
        if self.list_pages is not None:
            index = int(kwargs.get("nextToken", 0))
            return self.list_pages[index]
        family = kwargs["familyPrefix"]
        arns = [arn for arn in self.task_definitions if f"/{family}:" in arn]
        return {"taskDefinitionArns": arns}

    def describe_task_definition(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("describe_task_definition", kwargs))
        reference = kwargs["taskDefinition"]
        for arn, body in self.task_definitions.items():
            if reference in {arn, arn.rsplit("/", 1)[-1]}:
                return {"taskDefinition": body}
        raise KeyError(reference)

    def register_task_definition(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("register_task_definition", kwargs))
        arn = td_arn(kwargs["family"], self.next_revision)
        self.next_revision += 1
        body = {**kwargs, "taskDefinitionArn": arn}
        self.task_definitions[arn] = body
        return {"taskDefinition": body}

    def list_tags_for_resource(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("list_tags_for_resource", kwargs))
        return {"tags": list(self.service_tags)}

    def run_task(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("run_task", kwargs))
        return self.run_task_response

    def describe_tasks(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("describe_tasks", kwargs))
        return self.describe_tasks_response

    def get_paginator(self, name: str) -> FakePaginator:
        return FakePaginator(getattr(self, name))

    def get_waiter(self, name: str) -> FakeWaiter:
        self.calls.append(("get_waiter", {"name": name}))
        return FakeWaiter(self, name)


class FakeLogsClient:
    """Serves queued get_log_events responses; an Exception entry is raised."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.responses: list[dict[str, Any] | Exception] = []
        self.polled = threading.Event()
        self._lock = threading.Lock()

    def get_log_events(self, **kwargs: Any) -> dict[str, Any]:
        with self._lock:
            self.calls.append(kwargs)
            response = self.responses.pop(0) if self.responses else {"events": []}
        self.polled.set()
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def ecs_client() -> FakeEcsClient:
    return FakeEcsClient()


@pytest.fixture()
def logs_client() -> FakeLogsClient:
    return FakeLogsClient()


@pytest.fixture()
def progress() -> list[str]:
    return []


@pytest.fixture()
def context(ecs_client, logs_client, progress) -> RunContext:
    return RunContext(
        cluster=CLUSTER,
        ecs=ecs_client,
        logs=logs_client,
        timeout_seconds=60,
        on_progress=progress.append,
    )


@pytest.fixture()
def write_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), "utf-8")
        return path

    return _write


def container(name: str = "app", *, awslogs: bool = False) -> dict[str, Any]:
    definition: dict[str, Any] = {"name": name, "image": "alpine:latest", "essential": True}
    if awslogs:
        definition["logConfiguration"] = {
            "logDriver": "awslogs",
            "options": {
                "awslogs-group": "/ecs/app",
                "awslogs-region": "us-east-1",
                "awslogs-stream-prefix": "ecs",
            },
        }
    return definition
