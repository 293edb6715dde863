#!/usr/bin/env python3
"""Main CLI entry point for stackctl."""

import logging
import sys

import click

from cloudformation.models import ConfigurationError
from config import get_tool_config

from .stack import describe, destroy, list_stacks, preview, up


@click.group()
@click.version_option(package_name="cfn-stackctl")
@click.option(
    "--poll-interval-seconds",
    type=click.FloatRange(min=0, min_open=True),
    help="Seconds between status queries (default 5)",
)
@click.option(
    "--timeout-seconds",
    type=click.FloatRange(min=0, min_open=True),
    help="Give up waiting for a stack or change set after this many seconds",
)
@click.option("--region", "-r", help="AWS region")
@click.option("--profile", "-p", help="AWS profile to use")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="YAML configuration file (default: $STACKCTL_CONFIG or ./stackctl.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx, poll_interval_seconds, timeout_seconds, region, profile, config_path, verbose
) -> None:
    """Create, preview and destroy CloudFormation stacks.

    Every change goes through a change set that is shown before it is applied.
    """
    try:
        config = get_tool_config(config_path).with_overrides(
            poll_interval_seconds=poll_interval_seconds,
            timeout_seconds=timeout_seconds,
            region=region,
            profile=profile,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


cli.add_command(up)
cli.add_command(preview)
cli.add_command(destroy)
cli.add_command(list_stacks, name="list")
cli.add_command(describe)


if __name__ == "__main__":
    cli()
