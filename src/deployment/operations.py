"""
Map a settled stack status onto the next lifecycle operation.

Each table covers every StackStatus member; a status added to the enum
without a table entry fails at import time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from cloudformation.models import StackStatus
from cloudformation.poller import STACK_IN_PROGRESS


class OperationKind(Enum):
    """Next step chosen for a stack."""

    CREATE = "create"
    UPDATE = "update"
    RECREATE = "recreate"
    RESUME = "resume"
    DELETE = "delete"
    WAIT = "wait"
    ABORT = "abort"


@dataclass(frozen=True)
class Operation:
    """An operation kind, with the reason when it is an abort."""

    kind: OperationKind
    reason: Optional[str] = None


CREATE = Operation(OperationKind.CREATE)
UPDATE = Operation(OperationKind.UPDATE)
RECREATE = Operation(OperationKind.RECREATE)
RESUME = Operation(OperationKind.RESUME)
DELETE = Operation(OperationKind.DELETE)
WAIT = Operation(OperationKind.WAIT)


def abort(reason: str) -> Operation:
    """Build an abort operation."""
    return Operation(OperationKind.ABORT, reason)


def _check_exhaustive(name: str, table: Mapping[StackStatus, Operation]) -> None:
    missing = [status.value for status in StackStatus if status not in table]
    if missing:
        raise RuntimeError(f"{name} has no operation for: {', '.join(missing)}")


def _table(name: str, **operations: Operation) -> Dict[StackStatus, Operation]:
    table = {StackStatus[status]: operation for status, operation in operations.items()}
    for status in STACK_IN_PROGRESS:
        table.setdefault(status, WAIT)
    _check_exhaustive(name, table)
    return table


_UNHANDLED = abort("unhandled stack status")

UP_OPERATIONS = _table(
    "UP_OPERATIONS",
    DELETE_COMPLETE=CREATE,
    CREATE_COMPLETE=UPDATE,
    IMPORT_COMPLETE=UPDATE,
    UPDATE_COMPLETE=UPDATE,
    UPDATE_ROLLBACK_COMPLETE=UPDATE,
    CREATE_FAILED=RECREATE,
    ROLLBACK_COMPLETE=RECREATE,
    REVIEW_IN_PROGRESS=RESUME,
    ROLLBACK_FAILED=_UNHANDLED,
    DELETE_FAILED=_UNHANDLED,
    UPDATE_FAILED=_UNHANDLED,
    UPDATE_ROLLBACK_FAILED=_UNHANDLED,
    IMPORT_ROLLBACK_FAILED=_UNHANDLED,
    IMPORT_ROLLBACK_COMPLETE=_UNHANDLED,
)

PREVIEW_OPERATIONS = _table(
    "PREVIEW_OPERATIONS",
    DELETE_COMPLETE=CREATE,
    CREATE_COMPLETE=UPDATE,
    IMPORT_COMPLETE=UPDATE,
    UPDATE_COMPLETE=UPDATE,
    UPDATE_ROLLBACK_COMPLETE=UPDATE,
    REVIEW_IN_PROGRESS=RESUME,
    CREATE_FAILED=_UNHANDLED,
    ROLLBACK_COMPLETE=_UNHANDLED,
    ROLLBACK_FAILED=_UNHANDLED,
    DELETE_FAILED=_UNHANDLED,
    UPDATE_FAILED=_UNHANDLED,
    UPDATE_ROLLBACK_FAILED=_UNHANDLED,
    IMPORT_ROLLBACK_FAILED=_UNHANDLED,
    IMPORT_ROLLBACK_COMPLETE=_UNHANDLED,
)

DESTROY_OPERATIONS = _table(
    "DESTROY_OPERATIONS",
    DELETE_COMPLETE=abort("stack does not exist or is already deleted"),
    **{
        status.name: DELETE
        for status in StackStatus
        if status not in STACK_IN_PROGRESS and status is not StackStatus.DELETE_COMPLETE
    },
)


def select_operation(
    table: Mapping[StackStatus, Operation], status: Optional[StackStatus]
) -> Operation:
    """Pick the operation for ``status``; None means the stack does not exist."""
    if status is None:
        return table[StackStatus.DELETE_COMPLETE]
    return table[status]


def select_up_operation(status: Optional[StackStatus]) -> Operation:
    """Operation for the up command."""
    return select_operation(UP_OPERATIONS, status)


def select_preview_operation(status: Optional[StackStatus]) -> Operation:
    """Operation for the preview command."""
    return select_operation(PREVIEW_OPERATIONS, status)


def select_destroy_operation(status: Optional[StackStatus]) -> Operation:
    """Operation for the destroy command."""
    return select_operation(DESTROY_OPERATIONS, status)
