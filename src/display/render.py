"""
Turn stacks, change sets, resources and failures into renderable lines.

Nothing here writes to the terminal; ``display.console`` does that.
"""

from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional

from cloudformation.models import (
    ChangeAction,
    ChangeSet,
    ChangeSetStatus,
    Replacement,
    RequiresRecreation,
    ResourceChange,
    ResourceFailure,
    ResourceSummary,
    Stack,
    StackSummary,
)

UNKNOWN_CHANGE_SET = "UNKNOWN CHANGE SET"


class Line(NamedTuple):
    """One output line: indentation level, text and optional color name."""

    indent: int
    text: str
    color: Optional[str] = None


ACTION_SYMBOLS = {
    ChangeAction.ADD: "+",
    ChangeAction.DYNAMIC: "~/+",
    ChangeAction.MODIFY: "~",
    ChangeAction.REMOVE: "-",
}

ACTION_COLORS = {
    ChangeAction.ADD: "green",
    ChangeAction.DYNAMIC: "magenta",
    ChangeAction.IMPORT: "green",
    ChangeAction.MODIFY: "yellow",
    ChangeAction.REMOVE: "red",
}

CHANGE_SET_STATUS_COLORS = {
    ChangeSetStatus.CREATE_COMPLETE: "green",
    ChangeSetStatus.CREATE_IN_PROGRESS: "yellow",
    ChangeSetStatus.CREATE_PENDING: "yellow",
    ChangeSetStatus.DELETE_COMPLETE: "green",
    ChangeSetStatus.DELETE_FAILED: "red",
    ChangeSetStatus.DELETE_IN_PROGRESS: "yellow",
    ChangeSetStatus.DELETE_PENDING: "yellow",
    ChangeSetStatus.FAILED: "red",
}

REPLACEMENT_COLORS = {
    Replacement.CONDITIONAL: "yellow",
    Replacement.FALSE: "green",
    Replacement.TRUE: "red",
}

RECREATION_COLORS = {
    RequiresRecreation.ALWAYS: "red",
    RequiresRecreation.CONDITIONALLY: "yellow",
    RequiresRecreation.NEVER: "green",
}


def action_symbol(action: ChangeAction) -> str:
    """Diff-style symbol for a change action."""
    return ACTION_SYMBOLS.get(action, "?")


def status_color(status: str) -> str:
    """Color for a stack or resource status string."""
    if "FAILED" in status:
        return "red"
    if "IN_PROGRESS" in status:
        return "yellow"
    if "ROLLBACK" in status:
        return "red"
    return "green"


def _time(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def stack_lines(stack: Stack) -> List[Line]:
    """Lines describing a stack."""
    lines = [
        Line(0, f"Stack: {stack.name}"),
        Line(2, f"Id: {stack.stack_id}"),
        Line(2, f"Status: {stack.status.value}", status_color(stack.status.value)),
    ]
    if stack.status_reason:
        lines.append(Line(2, f"Status Reason: {stack.status_reason}"))
    if stack.description:
        lines.append(Line(2, f"Description: {stack.description}"))
    if stack.creation_time:
        lines.append(Line(2, f"Created: {_time(stack.creation_time)}"))
    if stack.last_updated_time:
        lines.append(Line(2, f"Last Updated: {_time(stack.last_updated_time)}"))
    if stack.change_set_id:
        lines.append(Line(2, f"Change Set: {stack.change_set_id}"))

    for title, values in (
        ("Parameters", stack.parameters),
        ("Outputs", stack.outputs),
        ("Tags", stack.tags),
    ):
        if values:
            lines.append(Line(2, f"{title}:"))
            lines.extend(Line(4, f"{key}: {value}") for key, value in values.items())
    return lines


def resource_change_lines(change: ResourceChange) -> List[Line]:
    """Lines describing one resource change of a change set."""
    color = ACTION_COLORS.get(change.action, "red")
    lines = [
        Line(
            2,
            f"{action_symbol(change.action)} {change.logical_id} ({change.resource_type})",
            color,
        ),
        Line(4, f"Action: {change.action.value}", color),
    ]
    if change.replacement is not None:
        lines.append(
            Line(
                4,
                f"Replacement: {change.replacement.value}",
                REPLACEMENT_COLORS.get(change.replacement, "red"),
            )
        )
    if change.physical_id:
        lines.append(Line(4, f"Physical Resource: {change.physical_id}"))
    if change.scope:
        lines.append(Line(4, f"Change Scope: {', '.join(change.scope)}"))

    if change.details:
        lines.append(Line(4, "Changed Properties"))
        for detail in change.details:
            if detail.attribute or detail.name:
                lines.append(
                    Line(6, " ".join(p for p in (detail.attribute, detail.name) if p))
                )
            if detail.requires_recreation is not None:
                lines.append(
                    Line(
                        8,
                        f"Requires recreation: {detail.requires_recreation.value}",
                        RECREATION_COLORS.get(detail.requires_recreation, "red"),
                    )
                )
            if detail.causing_entity:
                lines.append(Line(8, f"Causing entity: {detail.causing_entity}"))
            if detail.change_source:
                lines.append(Line(8, f"Change source: {detail.change_source}"))
    return lines


def change_set_lines(change_set: ChangeSet) -> List[Line]:
    """Lines describing a change set and its diff."""
    lines = [
        Line(0, f"Change set: {change_set.name or UNKNOWN_CHANGE_SET}"),
        Line(
            0,
            f"Change set status: {change_set.status.value}",
            CHANGE_SET_STATUS_COLORS.get(change_set.status, "red"),
        ),
    ]
    if change_set.status_reason:
        lines.append(Line(0, f"Status reason: {change_set.status_reason}"))
    if not change_set.changes:
        lines.append(Line(2, "No resource changes"))
    for change in change_set.changes:
        lines.extend(resource_change_lines(change))
    return lines


def resource_lines(resources: Iterable[ResourceSummary]) -> List[Line]:
    """Lines listing the resources of a stack."""
    lines = [Line(0, "Resources:")]
    for resource in resources:
        status = resource.status.value if resource.status else "UNKNOWN"
        lines.append(
            Line(
                2,
                f"{resource.logical_id} ({resource.resource_type}) {status}",
                status_color(status) if resource.status else None,
            )
        )
        if resource.physical_id:
            lines.append(Line(4, f"Physical Id: {resource.physical_id}"))
        if resource.status_reason:
            lines.append(Line(4, f"Reason: {resource.status_reason}"))
    return lines


def stack_summary_lines(summaries: Iterable[StackSummary]) -> List[Line]:
    """One line per stack, as in a status table."""
    lines = [
        Line(
            0,
            f"{summary.name:<40} {summary.status.value}",
            status_color(summary.status.value),
        )
        for summary in summaries
    ]
    return lines or [Line(0, "No stacks found")]


def failure_lines(
    failures: Iterable[ResourceFailure], recommendations: Iterable[str] = ()
) -> List[Line]:
    """Lines reporting failed resources, newest first."""
    lines = []
    for failure in failures:
        lines.append(Line(0, f"{failure.resource_type}: {failure.logical_id}", "red"))
        lines.append(Line(0, f"reason: {failure.reason}", "red"))
        lines.append(Line(0, f"properties: {failure.properties}", "red"))

    recommendations = list(recommendations)
    if recommendations:
        lines.append(Line(0, "Recommendations:"))
        lines.extend(
            Line(2, f"{i}. {text}") for i, text in enumerate(recommendations, 1)
        )
    return lines
