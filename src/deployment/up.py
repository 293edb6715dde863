"""
Create, update, re-create or resume a stack from a template.
"""

import logging
from typing import Optional

from botocore.exceptions import ClientError

from cloudformation.models import (
    UNKNOWN_REASON,
    ChangeSet,
    ChangeSetNotFoundError,
    ChangeSetStatus,
    ChangeSetType,
    LifecycleError,
    Stack,
    StackStatus,
)
from cloudformation.poller import change_set_in_progress

from .base_deployer import ApplyOutcome, BaseDeployer
from .operations import Operation, OperationKind, select_up_operation

logger = logging.getLogger(__name__)


class UpDeployer(BaseDeployer):
    """Bring a stack up to date with its template."""

    command_name = "up"
    success_statuses = frozenset({StackStatus.CREATE_COMPLETE, StackStatus.UPDATE_COMPLETE})

    def select_operation(self, status: Optional[StackStatus]) -> Operation:
        return select_up_operation(status)

    def apply(self, operation: Operation, stack: Optional[Stack]) -> ApplyOutcome:
        if operation.kind is OperationKind.CREATE:
            return self.create_or_update(ChangeSetType.CREATE)
        if operation.kind is OperationKind.UPDATE:
            return self.create_or_update(ChangeSetType.UPDATE)
        if operation.kind is OperationKind.RECREATE and stack is not None:
            return self.recreate(stack)
        if operation.kind is OperationKind.RESUME:
            return self.continue_pending_change_set()
        raise ValueError(f"up cannot apply {operation.kind.value}")

    def create_or_update(self, change_set_type: ChangeSetType) -> ApplyOutcome:
        """Submit a change set, then execute or discard it on confirmation."""
        change_set = self.submit_change_set(change_set_type)

        if change_set.status is ChangeSetStatus.FAILED:
            return self.reject(change_set)

        if self.confirm("Do you want to continue?"):
            self.manager.execute_change_set(change_set.change_set_id)
            return ApplyOutcome.EXECUTED

        self.manager.delete_change_set(change_set.change_set_id)
        return ApplyOutcome.DISCARDED

    def reject(self, change_set: ChangeSet) -> ApplyOutcome:
        """Drop a change set CloudFormation could not create."""
        self.rejection_reason = change_set.status_reason or UNKNOWN_REASON
        logger.error(f"Change set {change_set.name} failed: {self.rejection_reason}")
        self.manager.delete_change_set(change_set.change_set_id)
        return ApplyOutcome.REJECTED

    def recreate(self, stack: Stack) -> ApplyOutcome:
        """Delete a stack whose creation failed and create it again."""
        logger.info(
            f"Past creation of the stack {stack.name} failed ({stack.status.value}), "
            "re-create stack..."
        )
        if not self.confirm(f"Stack {stack.name} is {stack.status.value}. Re-create it?"):
            return ApplyOutcome.DISCARDED

        self.manager.delete_stack(stack.stack_id)
        try:
            self.poller.wait_for_stack(stack.stack_id)
        except (LifecycleError, ClientError) as e:
            logger.warning(f"Could not follow deletion of {stack.name}: {e}")

        self.stack_ref = self.stack_name
        outcome = self.create_or_update(ChangeSetType.CREATE)
        if outcome is ApplyOutcome.EXECUTED:
            logger.info(f"Stack {stack.name} re-created!")
        return outcome

    def continue_pending_change_set(self) -> ApplyOutcome:
        """Apply, keep or replace the change set the stack is waiting on."""
        change_set = self.find_pending_change_set()

        if self.confirm("Do you want to apply this change set?"):
            self.manager.execute_change_set(change_set.change_set_id)
            return ApplyOutcome.EXECUTED

        if not self.confirm("Do you want to delete this change set?"):
            return ApplyOutcome.DISCARDED

        self.manager.delete_change_set(change_set.change_set_id)
        try:
            status, reason = self.poller.wait_until_settled(
                change_set.change_set_id,
                self.manager.describe_change_set,
                change_set_in_progress,
            )
        except ChangeSetNotFoundError:
            status, reason = ChangeSetStatus.DELETE_COMPLETE, None

        if status is not ChangeSetStatus.DELETE_COMPLETE:
            raise LifecycleError(
                f"Unable to delete the change set {change_set.change_set_id}: {reason}"
            )

        if not self.config.recreate_after_delete:
            return ApplyOutcome.DISCARDED

        # CREATE rather than UPDATE: only REVIEW_IN_PROGRESS stacks resume, and
        # CloudFormation accepts only CREATE change sets for a stack that was
        # never created. See "Fresh change set after deleting a pending one"
        # in DESIGN.md.
        return self.create_or_update(ChangeSetType.CREATE)
