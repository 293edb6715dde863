"""
Delete a stack after confirmation.
"""

import logging
from typing import Optional

from cloudformation.diagnostics import FAILED_RESOURCE_STATUSES
from cloudformation.models import (
    ChangeSetNotFoundError,
    ResourceStatus,
    Stack,
    StackStatus,
)

from .base_deployer import ApplyOutcome, BaseDeployer
from .operations import Operation, OperationKind, select_destroy_operation

logger = logging.getLogger(__name__)


class DestroyDeployer(BaseDeployer):
    """Delete a stack and report the resources that could not be deleted."""

    command_name = "destroy"
    success_statuses = frozenset({StackStatus.DELETE_COMPLETE})
    best_effort_settle = True
    failure_statuses = FAILED_RESOURCE_STATUSES | {ResourceStatus.DELETE_FAILED}

    def select_operation(self, status: Optional[StackStatus]) -> Operation:
        return select_destroy_operation(status)

    def apply(self, operation: Operation, stack: Optional[Stack]) -> ApplyOutcome:
        if operation.kind is not OperationKind.DELETE or stack is None:
            raise ValueError(f"destroy cannot apply {operation.kind.value}")

        self.presenter.show_stack(stack)
        if stack.change_set_id:
            try:
                change_set = self.manager.describe_change_set(stack.change_set_id)
            except ChangeSetNotFoundError:
                logger.info(f"Change set {stack.change_set_id} no longer exists")
            else:
                self.presenter.show_change_set(change_set)

        if not self.confirm(f"Do you want to delete stack {stack.name}?"):
            return ApplyOutcome.DISCARDED

        self.manager.delete_stack(stack.stack_id)
        return ApplyOutcome.EXECUTED
