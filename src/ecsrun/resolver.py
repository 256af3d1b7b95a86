"""Decide which task definition revision a run executes."""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ecsrun.aws import RunContext
from ecsrun.definitions import family_of, load_task_definition, revision_of
from ecsrun.errors import ResolutionError
from ecsrun.models import ResolutionMode, RunOptions

logger = logging.getLogger(__name__)


class TaskReferenceResolver:
    """Resolve a task definition reference from run options and remote state.

    LATEST and SKIP reuse an already registered revision of the family,
    REGISTER registers the local task definition file (or only names its
    family in dry-run mode).
    """

    def __init__(self, context: RunContext) -> None:
        self.context = context

    def resolve(self, options: RunOptions) -> str:
        try:
            if options.resolution in {ResolutionMode.SKIP, ResolutionMode.LATEST}:
                return self._existing_revision(options)
            return self._register(options)
        except (BotoCoreError, ClientError, LookupError) as error:
            raise ResolutionError(f"failed to resolve task definition: {error}") from error

    def _existing_revision(self, options: RunOptions) -> str:
        family = self._family(options)
        if options.revision > 0:
            return f"{family}:{options.revision}"

        self.context.progress(
            f"Revision is not specified. Use latest task definition family {family}",
        )
        return self.find_latest_revision(family)

    def _family(self, options: RunOptions) -> str:
        if self.context.service:
            service = self.context.describe_service()
            # the service's revision is ignored, only the family is kept
            return family_of(service["taskDefinition"])
        path = options.task_definition_path or self.context.task_definition_path
        return self._load_local(path)["family"]

    def find_latest_revision(self, family: str) -> str:
        """Return the ARN of the highest ACTIVE revision registered under family."""

        # familyPrefix also matches longer family names, which may fill whole pages
        paginator = self.context.ecs.get_paginator("list_task_definitions")
        arns = [
            arn
            for page in paginator.paginate(familyPrefix=family, status="ACTIVE", sort="DESC")
            for arn in page.get("taskDefinitionArns") or []
            if family_of(arn) == family
        ]
        if not arns:
            raise ResolutionError(f"no registered task definition found for family {family}")
        logger.debug("Active task definitions for %s: %s", family, arns)
        return max(arns, key=revision_of)

    def _register(self, options: RunOptions) -> str:
        path = options.task_definition_path or self.context.task_definition_path
        task_definition = self._load_local(path)
        if options.dry_run:
            return f"family {task_definition['family']} will be registered"

        family = task_definition["family"]
        self.context.progress(f"Registering a new task definition family {family}")
        response = self.context.ecs.register_task_definition(**task_definition)
        arn = response["taskDefinition"]["taskDefinitionArn"]
        self.context.progress(f"Task definition is registered {arn}")
        return arn

    @staticmethod
    def _load_local(path: str | None) -> dict[str, Any]:
        if not path:
            raise ResolutionError("task definition path is not configured")
        try:
            return load_task_definition(path)
        except (OSError, ValueError) as error:
            raise ResolutionError(f"failed to load task definition {path}: {error}") from error
