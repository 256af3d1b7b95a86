"""CLI entrypoint for ecsrun."""

import logging
from pathlib import Path

import rich_click as click

from ecsrun import __version__
from ecsrun.controllers import RunCliController, RunTaskCommand
from ecsrun.errors import RunTaskError

click.rich_click.USE_MARKDOWN = True
RUN_CONTROLLER = RunCliController()


@click.group()
@click.version_option(version=__version__, prog_name="ecsrun")
@click.option("--debug/--no-debug", default=False, help="Log debug output to stderr.")
def ecsrun(debug: bool) -> None:
    """Run ad-hoc tasks on Amazon ECS."""

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@ecsrun.command("run")
@click.option(
    "--task-def",
    "task_definition_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Task definition JSON to register and run. Defaults to ECSRUN_TASK_DEFINITION.",
)
@click.option(
    "--revision",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Revision to run with --skip-task-definition or --latest-task-definition.",
)
@click.option(
    "--skip-task-definition",
    is_flag=True,
    default=False,
    help="Do not register; run an already registered revision.",
)
@click.option(
    "--latest-task-definition",
    is_flag=True,
    default=False,
    help="Run the latest registered revision of the family.",
)
@click.option("--dry-run", is_flag=True, default=False, help="Resolve only, run nothing.")
@click.option("--no-wait", is_flag=True, default=False, help="Exit right after run_task.")
@click.option(
    "--wait-until",
    type=click.Choice(["running", "stopped"], case_sensitive=False),
    default="stopped",
    show_default=True,
    help="Task state to wait for.",
)
@click.option("--overrides", default=None, help="Task overrides as inline JSON.")
@click.option(
    "--overrides-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Task overrides JSON file. Ignored when --overrides is given.",
)
@click.option(
    "--count",
    type=click.IntRange(min=1, max=10),
    default=1,
    show_default=True,
    help="Number of tasks to start.",
)
@click.option("--tags", default="", help="Task tags, for example `Env=dev,Team=ops`.")
@click.option(
    "--propagate-tags",
    default="",
    help="`SERVICE` copies the service tags; other values are passed to ECS as-is.",
)
@click.option("--watch-container", default=None, help="Container whose logs are streamed.")
@click.option("--region", default=None, help="AWS region. Defaults to ECSRUN_REGION.")
@click.option("--profile", default=None, help="AWS profile. Defaults to ECSRUN_PROFILE.")
@click.option("--cluster", default=None, help="ECS cluster. Defaults to ECSRUN_CLUSTER.")
@click.option("--service", default=None, help="ECS service. Defaults to ECSRUN_SERVICE.")
@click.option(
    "--service-def",
    "service_definition_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Service definition JSON used for placement and networking.",
)
@click.option(
    "--timeout",
    "timeout_seconds",
    type=click.IntRange(min=1),
    default=None,
    help="Wait timeout in seconds. Defaults to ECSRUN_TIMEOUT_SECONDS (600).",
)
def run_task(  # noqa: PLR0913
    task_definition_path: Path | None,
    revision: int,
    skip_task_definition: bool,
    latest_task_definition: bool,
    dry_run: bool,
    no_wait: bool,
    wait_until: str,
    overrides: str | None,
    overrides_file: Path | None,
    count: int,
    tags: str,
    propagate_tags: str,
    watch_container: str | None,
    region: str | None,
    profile: str | None,
    cluster: str | None,
    service: str | None,
    service_definition_path: Path | None,
    timeout_seconds: int | None,
) -> None:
    """Run a task and wait until it stops (or runs), streaming its logs."""

    command = RunTaskCommand(
        task_definition_path=str(task_definition_path) if task_definition_path else None,
        revision=revision,
        skip_task_definition=skip_task_definition,
        latest_task_definition=latest_task_definition,
        dry_run=dry_run,
        no_wait=no_wait,
        wait_until=wait_until.lower(),
        overrides=overrides,
        overrides_file=str(overrides_file) if overrides_file else None,
        count=count,
        tags=tags,
        propagate_tags=propagate_tags,
        watch_container=watch_container,
        region=region,
        profile=profile,
        cluster=cluster,
        service=service,
        service_definition_path=str(service_definition_path) if service_definition_path else None,
        timeout_seconds=timeout_seconds,
    )
    try:
        RUN_CONTROLLER.run_task(command, on_progress=click.echo)
    except (RunTaskError, ValueError) as error:
        raise click.ClickException(str(error)) from error


if __name__ == "__main__":  # pragma: no cover
    ecsrun()
