"""
Preview the change set a stack update would apply.
"""

from typing import Optional

from cloudformation.models import ChangeSetType, Stack, StackStatus

from .base_deployer import ApplyOutcome, BaseDeployer
from .operations import Operation, OperationKind, select_preview_operation


class PreviewDeployer(BaseDeployer):
    """Show what ``up`` would change, without executing or deleting anything.

    A submitted change set is left on the stack so it can be reviewed in the
    console and picked up by a later ``up``.
    """

    command_name = "preview"

    def select_operation(self, status: Optional[StackStatus]) -> Operation:
        return select_preview_operation(status)

    def apply(self, operation: Operation, stack: Optional[Stack]) -> ApplyOutcome:
        if operation.kind is OperationKind.CREATE:
            self.submit_change_set(ChangeSetType.CREATE)
        elif operation.kind is OperationKind.UPDATE:
            self.submit_change_set(ChangeSetType.UPDATE)
        elif operation.kind is OperationKind.RESUME:
            self.find_pending_change_set()
        else:
            raise ValueError(f"preview cannot apply {operation.kind.value}")
        return ApplyOutcome.INSPECTED
