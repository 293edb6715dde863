"""
Base lifecycle command with the shared settle, select, apply, settle pipeline.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional, Union

from botocore.exceptions import ClientError

from cloudformation.diagnostics import (
    FAILED_RESOURCE_STATUSES,
    StackDiagnostics,
    failure_recommendations,
)
from cloudformation.models import (
    ChangeSet,
    ChangeSetNotFoundError,
    ChangeSetType,
    LifecycleError,
    ResourceFailure,
    ResourceStatus,
    ResourceSummary,
    Stack,
    StackNotFoundError,
    StackStatus,
    StackSummary,
)
from cloudformation.poller import StatusPoller
from cloudformation.stack_manager import StackManager, change_set_name
from config import ToolConfig

from .operations import Operation, OperationKind, abort
from .template import TemplateRenderer

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class DeploymentStatus(Enum):
    """Final outcome of a lifecycle command."""

    SUCCESS = "success"
    FAILED = "failed"
    REJECTED = "rejected"
    ABORTED = "aborted"
    DECLINED = "declined"
    PREVIEWED = "previewed"


class ApplyOutcome(Enum):
    """What applying an operation did to the stack."""

    EXECUTED = "executed"
    DISCARDED = "discarded"
    INSPECTED = "inspected"
    REJECTED = "rejected"


@dataclass
class DeploymentResult:
    """Result of a lifecycle command."""

    status: DeploymentStatus
    message: str
    duration: float
    stack_status: Optional[StackStatus] = None
    failures: List[ResourceFailure] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if the command reached its goal."""
        return self.status in (DeploymentStatus.SUCCESS, DeploymentStatus.PREVIEWED)


class Presenter(ABC):
    """Output side of the lifecycle commands."""

    @abstractmethod
    def show_stack(self, stack: Stack) -> None:
        """Display a stack."""

    @abstractmethod
    def show_change_set(self, change_set: ChangeSet) -> None:
        """Display a change set and its resource changes."""

    @abstractmethod
    def show_resources(self, resources: List[ResourceSummary]) -> None:
        """Display the resources of a stack."""

    @abstractmethod
    def show_stack_summaries(self, summaries: List[StackSummary]) -> None:
        """Display a list of stacks."""

    @abstractmethod
    def show_failures(
        self, failures: List[ResourceFailure], recommendations: Iterable[str] = ()
    ) -> None:
        """Display failed resources."""


class BaseDeployer(ABC):
    """Base class for the stack lifecycle commands.

    ``execute`` waits for the stack to settle, asks the subclass which
    operation the settled status calls for, lets the subclass apply it, waits
    again and classifies the final status. Failures after the apply step are
    reported through the presenter, not raised.
    """

    command_name = "deploy"
    success_statuses: FrozenSet[StackStatus] = frozenset()
    # Resource statuses reported when the command fails
    failure_statuses: FrozenSet[ResourceStatus] = FAILED_RESOURCE_STATUSES
    # Errors while waiting for the initial settle are ignored
    best_effort_settle = False

    def __init__(
        self,
        manager: StackManager,
        stack_name: str,
        presenter: Presenter,
        confirm: Confirm,
        config: Optional[ToolConfig] = None,
        poller: Optional[StatusPoller] = None,
        template: Optional[Union[str, Path]] = None,
        renderer: Optional[TemplateRenderer] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize base deployer.

        Args:
            manager: CloudFormation adapter
            stack_name: Name of the stack to operate on
            presenter: Output for stacks, change sets and failures
            confirm: Yes/no decision source, called with a prompt
            config: Tool configuration (defaults when not provided)
            poller: Status poller (built from config when not provided)
            template: Template source file, for commands that submit change sets
            renderer: Template renderer (built from config when not provided)
            clock: Wall clock returning epoch seconds
        """
        self.config = config or ToolConfig()
        self.manager = manager
        self.stack_name = stack_name
        self.presenter = presenter
        self.confirm = confirm
        self.poller = poller or StatusPoller(
            manager,
            poll_interval=self.config.poll_interval_seconds,
            timeout=self.config.timeout_seconds,
        )
        self.template = Path(template) if template else None
        self.renderer = renderer or TemplateRenderer(
            self.config.renderer_command, self.config.renderer_format
        )
        self.diagnostics = StackDiagnostics(manager)
        self._clock = clock

        # Stack name until the stack id is known; ids stay valid after deletion
        self.stack_ref = stack_name
        self.boundary: Optional[float] = None
        self.rejection_reason: Optional[str] = None

    @abstractmethod
    def select_operation(self, status: Optional[StackStatus]) -> Operation:
        """Choose the operation for a settled status (None: no stack)."""

    @abstractmethod
    def apply(self, operation: Operation, stack: Optional[Stack]) -> ApplyOutcome:
        """Carry out the selected operation."""

    def execute(self) -> DeploymentResult:
        """Run the command pipeline."""
        start_time = self._clock()

        stack = self.settle_stack(best_effort=self.best_effort_settle)
        operation = self.select_operation(stack.status if stack else None)
        if operation.kind is OperationKind.WAIT:
            stack = self.settle_stack()
            operation = self.select_operation(stack.status if stack else None)
            if operation.kind is OperationKind.WAIT:
                operation = abort("stack operation did not settle")

        if stack is not None:
            self.stack_ref = stack.stack_id
        status = stack.status if stack else None

        if operation.kind is OperationKind.ABORT:
            reason = (stack.status_reason if stack else None) or operation.reason
            logger.error(
                f"{self.command_name.capitalize()} aborted with status: "
                f"{status.value if status else 'NOT_FOUND'}, reason: {reason}. "
                "Check the AWS Console"
            )
            return self._result(
                DeploymentStatus.ABORTED, f"Aborted: {reason}", start_time, status
            )

        # Captured before any mutating call so older failures are not reported
        self.boundary = self._clock()
        logger.info(f"{self.command_name} {self.stack_name}: {operation.kind.value}")
        outcome = self.apply(operation, stack)

        if outcome is ApplyOutcome.INSPECTED:
            return self._result(
                DeploymentStatus.PREVIEWED, "Change set ready for review", start_time, status
            )
        if outcome is ApplyOutcome.REJECTED:
            return self._result(
                DeploymentStatus.REJECTED,
                f"Change set rejected: {self.rejection_reason}",
                start_time,
                status,
            )

        final = self.settle_stack()
        final_status = final.status if final else None

        if outcome is ApplyOutcome.DISCARDED:
            logger.info(f"{self.command_name.capitalize()} of {self.stack_name} declined")
            return self._result(
                DeploymentStatus.DECLINED, "Declined by operator", start_time, final_status
            )

        return self.classify(final_status, start_time)

    def classify(
        self, status: Optional[StackStatus], start_time: float
    ) -> DeploymentResult:
        """Turn the final stack status into a result, reporting failures."""
        if status in self.success_statuses:
            logger.info(f"{self.command_name.capitalize()} completed successfully!")
            return self._result(
                DeploymentStatus.SUCCESS,
                f"{self.command_name.capitalize()} completed successfully",
                start_time,
                status,
            )

        status_text = status.value if status else "NOT_FOUND"
        logger.error(f"{self.command_name.capitalize()} failed with status: {status_text}")
        failures = self.diagnostics.failures_since(
            self.stack_ref, self.boundary or 0.0, self.failure_statuses
        )
        recommendations = failure_recommendations(failures)
        self.presenter.show_failures(failures, recommendations)

        result = self._result(
            DeploymentStatus.FAILED,
            f"{self.command_name.capitalize()} failed with status: {status_text}",
            start_time,
            status,
        )
        result.failures = failures
        result.recommendations = recommendations
        return result

    def settle_stack(self, best_effort: bool = False) -> Optional[Stack]:
        """Wait for the stack to settle; None when it does not exist."""
        try:
            return self.poller.wait_for_stack(self.stack_ref)
        except StackNotFoundError:
            return None
        except (LifecycleError, ClientError) as e:
            if not best_effort:
                raise
            logger.warning(f"Ignoring error while waiting for {self.stack_ref}: {e}")

        try:
            return self.manager.describe_stack(self.stack_ref)
        except StackNotFoundError:
            return None

    # Change set helpers shared by the commands

    def submit_change_set(self, change_set_type: ChangeSetType) -> ChangeSet:
        """Render the template, submit a change set and wait until it is ready."""
        if self.template is None:
            raise ValueError(f"{self.command_name} needs a template to submit a change set")

        logger.info(f"{change_set_type.value.capitalize()} stack {self.stack_name}...")
        template_body = self.renderer.render(self.template)
        change_set_id, stack_id = self.manager.create_change_set(
            self.stack_name,
            change_set_name(self.stack_name),
            change_set_type,
            template_body,
            capabilities=self.config.capabilities,
        )
        self.stack_ref = stack_id

        change_set = self.poller.wait_for_change_set(change_set_id)
        self.presenter.show_change_set(change_set)
        return change_set

    def find_pending_change_set(self) -> ChangeSet:
        """Describe and display the change set awaiting execution.

        Raises:
            ChangeSetNotFoundError: if no change set is available.
        """
        summary = self.manager.pending_change_set(self.stack_name)
        if summary is None:
            raise ChangeSetNotFoundError(
                f"Pending change set not found for stack {self.stack_name}"
            )

        logger.info(f"Found a pending change set: {summary.name}")
        change_set = self.manager.describe_change_set(summary.change_set_id)
        self.presenter.show_change_set(change_set)
        return change_set

    def _result(
        self,
        status: DeploymentStatus,
        message: str,
        start_time: float,
        stack_status: Optional[StackStatus],
    ) -> DeploymentResult:
        return DeploymentResult(
            status=status,
            message=message,
            duration=self._clock() - start_time,
            stack_status=stack_status,
        )
