"""Build and send the run_task request."""

from __future__ import annotations

import json
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ecsrun.aws import RunContext
from ecsrun.definitions import load_service_definition
from ecsrun.errors import SubmissionError
from ecsrun.models import PropagationMode, RunOptions, TaskHandle

logger = logging.getLogger(__name__)

# Placement and networking parameters copied verbatim from the service.
SERVICE_RUN_PARAMETERS: tuple[str, ...] = (
    "networkConfiguration",
    "launchType",
    "capacityProviderStrategy",
    "placementConstraints",
    "placementStrategy",
    "platformVersion",
    "enableECSManagedTags",
    "enableExecuteCommand",
)


class RunSubmitter:
    """Issue exactly one run_task call and turn the response into a TaskHandle."""

    def __init__(self, context: RunContext) -> None:
        self.context = context

    def submit(
        self,
        task_definition: str,
        overrides: dict[str, Any],
        options: RunOptions,
        *,
        tags: list[dict[str, str]],
    ) -> TaskHandle:
        self.context.progress(f"Running task with {task_definition}")
        try:
            request = self.build_request(task_definition, overrides, options, tags=tags)
            logger.debug("run task input: %s", json.dumps(request, default=str))
            response = self.context.ecs.run_task(**request)
        except (BotoCoreError, ClientError, LookupError) as error:
            raise SubmissionError(str(error)) from error

        failures = response.get("failures") or []
        if failures:
            failure = failures[0]
            if failure.get("arn"):
                self.context.progress(f"Task ARN: {failure['arn']}")
            raise SubmissionError(failure.get("reason") or "run_task reported a failure")

        tasks = response.get("tasks") or []
        if not tasks:
            raise SubmissionError("run_task returned no tasks")
        handle = TaskHandle.from_response(tasks[0])
        self.context.progress(f"Task ARN: {handle.task_arn}")
        return handle

    def build_request(
        self,
        task_definition: str,
        overrides: dict[str, Any],
        options: RunOptions,
        *,
        tags: list[dict[str, str]],
    ) -> dict[str, Any]:
        """Assemble run_task keyword arguments, including propagated tags."""

        service = self._service_definition()
        request: dict[str, Any] = {
            "cluster": self.context.cluster,
            "taskDefinition": task_definition,
            "overrides": overrides,
            "count": options.count,
        }
        for key in SERVICE_RUN_PARAMETERS:
            if service.get(key) is not None:
                request[key] = service[key]

        outgoing_tags = list(tags)
        propagation = options.propagation
        if propagation.mode is PropagationMode.SERVICE:
            # emulated client-side, so propagateTags stays unset
            service_arn = self._service_arn(service)
            response = self.context.ecs.list_tags_for_resource(resourceArn=service_arn)
            service_tags = response.get("tags") or []
            logger.debug("propagate tags from service %s: %s", service_arn, service_tags)
            outgoing_tags.extend(service_tags)
        elif propagation.mode is PropagationMode.PASSTHROUGH:
            request["propagateTags"] = propagation.value

        if outgoing_tags:
            request["tags"] = outgoing_tags
        return request

    def _service_definition(self) -> dict[str, Any]:
        if self.context.service_definition_path:
            path = self.context.service_definition_path
            try:
                return load_service_definition(path)
            except (OSError, ValueError) as error:
                raise SubmissionError(
                    f"failed to load service definition {path}: {error}",
                ) from error
        if self.context.service:
            return self.context.describe_service()
        return {}

    def _service_arn(self, service: dict[str, Any]) -> str:
        if service.get("serviceArn"):
            return service["serviceArn"]
        if not self.context.service:
            raise SubmissionError("tag propagation from SERVICE requires a configured service")
        return self.context.describe_service()["serviceArn"]
