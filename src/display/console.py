"""
Terminal output for the lifecycle commands, using click.
"""

from typing import Iterable, List

import click

from cloudformation.models import (
    ChangeSet,
    ResourceFailure,
    ResourceSummary,
    Stack,
    StackSummary,
)
from deployment.base_deployer import Presenter

from .render import (
    Line,
    change_set_lines,
    failure_lines,
    resource_lines,
    stack_lines,
    stack_summary_lines,
)


class ConsolePresenter(Presenter):
    """Write render lines to stdout, colored unless ``color`` is False."""

    def __init__(self, color: bool = True):
        self.color = color

    def echo_lines(self, lines: Iterable[Line]) -> None:
        """Write lines indented by their level."""
        for line in lines:
            text = " " * line.indent + line.text
            if self.color and line.color:
                text = click.style(text, fg=line.color)
            click.echo(text)

    def show_stack(self, stack: Stack) -> None:
        """Show a stack with its parameters, outputs and tags."""
        self.echo_lines(stack_lines(stack))

    def show_change_set(self, change_set: ChangeSet) -> None:
        """Show a change set as a diff of resource changes."""
        self.echo_lines(change_set_lines(change_set))

    def show_resources(self, resources: List[ResourceSummary]) -> None:
        """Show the resources of a stack."""
        self.echo_lines(resource_lines(resources))

    def show_stack_summaries(self, summaries: List[StackSummary]) -> None:
        """Show one line per stack."""
        self.echo_lines(stack_summary_lines(summaries))

    def show_failures(
        self, failures: List[ResourceFailure], recommendations: Iterable[str] = ()
    ) -> None:
        """Show failed resources, then the recommendations."""
        self.echo_lines(failure_lines(failures, recommendations))


def confirm(prompt: str) -> bool:
    """Ask a yes/no question; anything but an explicit yes is a no."""
    return click.confirm(prompt, default=False)
