#!/usr/bin/env python3
"""
Stack lifecycle CLI commands.
"""

import logging
import sys
from typing import Optional, Type

import click
from botocore.exceptions import ClientError

from cloudformation import StackManager, StatusPoller
from cloudformation.models import (
    LifecycleError,
    StackNotFoundError,
    StackStatus,
    TemplateRenderError,
)
from config import ToolConfig
from deployment import (
    BaseDeployer,
    DeploymentResult,
    DeploymentStatus,
    DestroyDeployer,
    PreviewDeployer,
    UpDeployer,
)
from display import ConsolePresenter, confirm

logger = logging.getLogger(__name__)

STATUS_CHOICES = [status.value for status in StackStatus]


def _config(ctx: click.Context) -> ToolConfig:
    return ctx.obj["config"]


def _manager(config: ToolConfig) -> StackManager:
    return StackManager(region=config.region, profile=config.profile)


def _poller(manager: StackManager, config: ToolConfig) -> StatusPoller:
    return StatusPoller(
        manager,
        poll_interval=config.poll_interval_seconds,
        timeout=config.timeout_seconds,
    )


def _fail(error: Exception) -> None:
    # Renderer diagnostics are passed through untouched
    if isinstance(error, TemplateRenderError):
        click.echo(str(error), err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _report(result: DeploymentResult) -> None:
    colors = {
        DeploymentStatus.SUCCESS: "green",
        DeploymentStatus.PREVIEWED: "green",
        DeploymentStatus.DECLINED: "yellow",
        DeploymentStatus.FAILED: "red",
        DeploymentStatus.REJECTED: "red",
        DeploymentStatus.ABORTED: "red",
    }
    click.echo(click.style(result.message, fg=colors[result.status]))


def _run(
    ctx: click.Context,
    deployer_cls: Type[BaseDeployer],
    stack: str,
    template: Optional[str] = None,
) -> None:
    config = _config(ctx)
    try:
        manager = _manager(config)
        deployer = deployer_cls(
            manager,
            stack,
            ConsolePresenter(),
            confirm,
            config=config,
            poller=_poller(manager, config),
            template=template,
        )
        result = deployer.execute()
    except Exception as e:
        _fail(e)
        return

    # Every orchestration outcome, including failed and declined, exits 0
    _report(result)


@click.command()
@click.option("--stack", "-s", required=True, help="CloudFormation stack name")
@click.option(
    "--template",
    "-t",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Template source file passed to the renderer",
)
@click.pass_context
def up(ctx, stack, template) -> None:
    """Create or update a stack through a reviewed change set."""
    _run(ctx, UpDeployer, stack, template)


@click.command()
@click.option("--stack", "-s", required=True, help="CloudFormation stack name")
@click.option(
    "--template",
    "-t",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Template source file passed to the renderer",
)
@click.pass_context
def preview(ctx, stack, template) -> None:
    """Show the change set an up would apply, without executing it."""
    _run(ctx, PreviewDeployer, stack, template)


@click.command()
@click.option("--stack", "-s", required=True, help="CloudFormation stack name")
@click.pass_context
def destroy(ctx, stack) -> None:
    """Delete a stack after confirmation."""
    _run(ctx, DestroyDeployer, stack)


@click.command(name="list")
@click.option(
    "--status-filter",
    "-f",
    multiple=True,
    type=click.Choice(STATUS_CHOICES),
    help="Stack status to include (repeatable)",
)
@click.pass_context
def list_stacks(ctx, status_filter) -> None:
    """List stacks, by default those that exist and are usable."""
    config = _config(ctx)
    try:
        statuses = (
            [StackStatus(status) for status in status_filter]
            if status_filter
            else config.default_status_filter
        )
        summaries = _manager(config).list_stacks(statuses)
    except Exception as e:
        _fail(e)
        return

    ConsolePresenter().show_stack_summaries(summaries)


@click.command()
@click.option("--stack", "-s", required=True, help="CloudFormation stack name")
@click.pass_context
def describe(ctx, stack) -> None:
    """Show a stack and its resources once it has settled."""
    config = _config(ctx)
    presenter = ConsolePresenter()
    try:
        manager = _manager(config)
        try:
            details = _poller(manager, config).wait_for_stack(stack)
        except StackNotFoundError:
            raise
        except (LifecycleError, ClientError) as e:
            logger.warning(f"Ignoring error while waiting for {stack}: {e}")
            details = manager.describe_stack(stack)

        resources = manager.list_stack_resources(details.stack_id)
    except Exception as e:
        _fail(e)
        return

    presenter.show_stack(details)
    presenter.show_resources(resources)
