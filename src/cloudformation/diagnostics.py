"""
CloudFormation stack diagnostics: isolate the resources that made an operation fail.
"""

import logging
from typing import AbstractSet, Iterable, List

from .models import UNKNOWN_REASON, ResourceFailure, ResourceStatus, StackEvent
from .stack_manager import StackManager

logger = logging.getLogger(__name__)

FAILED_RESOURCE_STATUSES = frozenset(
    {ResourceStatus.CREATE_FAILED, ResourceStatus.UPDATE_FAILED}
)


def event_time(event: StackEvent) -> float:
    """Epoch seconds of an event; events without a timestamp count as 0."""
    if event.timestamp is None:
        return 0.0
    return event.timestamp.timestamp()


def extract_failures(
    events: Iterable[StackEvent],
    boundary: float,
    statuses: AbstractSet[ResourceStatus] = FAILED_RESOURCE_STATUSES,
) -> List[ResourceFailure]:
    """Keep the failures that happened after ``boundary``.

    Only events whose resource status is in ``statuses`` count; by default
    these are the create and update failures.

    The order of ``events`` is preserved. CloudFormation returns events newest
    first, so the result lists the most recent failure first.
    """
    failures = []
    for event in events:
        if event.resource_status not in statuses:
            continue
        if event_time(event) <= boundary:
            continue
        failures.append(
            ResourceFailure(
                resource_type=event.resource_type or "",
                logical_id=event.logical_id or "",
                reason=event.status_reason or UNKNOWN_REASON,
                properties=event.resource_properties or "",
            )
        )
    return failures


def failure_recommendations(failures: Iterable[ResourceFailure]) -> List[str]:
    """Suggest fixes for well-known failure reasons, without duplicates."""
    recommendations: List[str] = []

    def add(text: str) -> None:
        if text not in recommendations:
            recommendations.append(text)

    for failure in failures:
        reason = failure.reason.lower()

        if failure.resource_type == "AWS::S3::Bucket" and "already exists" in reason:
            add("S3 bucket names are global; choose a different bucket name")
        if "accessdenied" in reason or "is not authorized" in reason:
            add("Check the IAM permissions of the deploying identity")
        if "requires capabilities" in reason:
            add("Add the missing capability (e.g. CAPABILITY_IAM) to 'capabilities'")
        if "dependencyviolation" in reason:
            add("Another resource still depends on this one; remove it first")
        if "timeout" in reason or "timed out" in reason:
            add("The resource timed out; check its logs for the root cause")

    return recommendations


class StackDiagnostics:
    """Diagnose CloudFormation stack operation failures."""

    def __init__(self, stack_manager: StackManager):
        """Initialize diagnostics with a stack manager."""
        self.stack_manager = stack_manager

    def failures_since(
        self,
        stack: str,
        boundary: float,
        statuses: AbstractSet[ResourceStatus] = FAILED_RESOURCE_STATUSES,
    ) -> List[ResourceFailure]:
        """Fetch the stack's events and extract failures newer than ``boundary``."""
        events = self.stack_manager.list_stack_events(stack)
        failures = extract_failures(events, boundary, statuses)
        logger.info(f"Found {len(failures)} failed resources for {stack}")
        return failures
