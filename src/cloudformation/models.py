"""
CloudFormation data model: status enums, typed records and errors.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

UNKNOWN_REASON = "Unknown reason"


class StackStatus(Enum):
    """Status of a CloudFormation stack."""

    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_FAILED = "CREATE_FAILED"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_FAILED = "DELETE_FAILED"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    UPDATE_COMPLETE_CLEANUP_IN_PROGRESS = "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"
    UPDATE_FAILED = "UPDATE_FAILED"
    UPDATE_ROLLBACK_IN_PROGRESS = "UPDATE_ROLLBACK_IN_PROGRESS"
    UPDATE_ROLLBACK_FAILED = "UPDATE_ROLLBACK_FAILED"
    UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS = (
        "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS"
    )
    UPDATE_ROLLBACK_COMPLETE = "UPDATE_ROLLBACK_COMPLETE"
    REVIEW_IN_PROGRESS = "REVIEW_IN_PROGRESS"
    IMPORT_IN_PROGRESS = "IMPORT_IN_PROGRESS"
    IMPORT_COMPLETE = "IMPORT_COMPLETE"
    IMPORT_ROLLBACK_IN_PROGRESS = "IMPORT_ROLLBACK_IN_PROGRESS"
    IMPORT_ROLLBACK_FAILED = "IMPORT_ROLLBACK_FAILED"
    IMPORT_ROLLBACK_COMPLETE = "IMPORT_ROLLBACK_COMPLETE"


class ChangeSetStatus(Enum):
    """Status of a change set."""

    CREATE_PENDING = "CREATE_PENDING"
    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    DELETE_PENDING = "DELETE_PENDING"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    DELETE_FAILED = "DELETE_FAILED"
    FAILED = "FAILED"


class ChangeSetType(Enum):
    """Kind of change set submitted for a stack."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"


class ExecutionStatus(Enum):
    """Whether a change set can be executed."""

    UNAVAILABLE = "UNAVAILABLE"
    AVAILABLE = "AVAILABLE"
    EXECUTE_IN_PROGRESS = "EXECUTE_IN_PROGRESS"
    EXECUTE_COMPLETE = "EXECUTE_COMPLETE"
    EXECUTE_FAILED = "EXECUTE_FAILED"
    OBSOLETE = "OBSOLETE"


class ChangeAction(Enum):
    """Action a change set takes on a resource."""

    ADD = "Add"
    MODIFY = "Modify"
    REMOVE = "Remove"
    IMPORT = "Import"
    DYNAMIC = "Dynamic"


class Replacement(Enum):
    """Whether a modified resource is replaced."""

    TRUE = "True"
    FALSE = "False"
    CONDITIONAL = "Conditional"


class RequiresRecreation(Enum):
    """Whether changing an attribute recreates the resource."""

    NEVER = "Never"
    CONDITIONALLY = "Conditionally"
    ALWAYS = "Always"


class ResourceStatus(Enum):
    """Status of a single resource inside a stack or stack event."""

    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_FAILED = "CREATE_FAILED"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_FAILED = "DELETE_FAILED"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    DELETE_SKIPPED = "DELETE_SKIPPED"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    UPDATE_FAILED = "UPDATE_FAILED"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"
    IMPORT_FAILED = "IMPORT_FAILED"
    IMPORT_COMPLETE = "IMPORT_COMPLETE"
    IMPORT_IN_PROGRESS = "IMPORT_IN_PROGRESS"
    IMPORT_ROLLBACK_IN_PROGRESS = "IMPORT_ROLLBACK_IN_PROGRESS"
    IMPORT_ROLLBACK_FAILED = "IMPORT_ROLLBACK_FAILED"
    IMPORT_ROLLBACK_COMPLETE = "IMPORT_ROLLBACK_COMPLETE"
    EXPORT_FAILED = "EXPORT_FAILED"
    EXPORT_COMPLETE = "EXPORT_COMPLETE"
    EXPORT_IN_PROGRESS = "EXPORT_IN_PROGRESS"
    EXPORT_ROLLBACK_IN_PROGRESS = "EXPORT_ROLLBACK_IN_PROGRESS"
    EXPORT_ROLLBACK_FAILED = "EXPORT_ROLLBACK_FAILED"
    EXPORT_ROLLBACK_COMPLETE = "EXPORT_ROLLBACK_COMPLETE"
    UPDATE_ROLLBACK_IN_PROGRESS = "UPDATE_ROLLBACK_IN_PROGRESS"
    UPDATE_ROLLBACK_COMPLETE = "UPDATE_ROLLBACK_COMPLETE"
    UPDATE_ROLLBACK_FAILED = "UPDATE_ROLLBACK_FAILED"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    # Statuses of the stack's own entries in its event stream
    REVIEW_IN_PROGRESS = "REVIEW_IN_PROGRESS"
    UPDATE_COMPLETE_CLEANUP_IN_PROGRESS = "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS"
    UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS = (
        "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS"
    )


class LifecycleError(Exception):
    """Base class for stack lifecycle errors."""


class StackNotFoundError(LifecycleError):
    """The requested stack does not exist."""

    def __init__(self, stack: str):
        super().__init__(f"Stack {stack} does not exist")
        self.stack = stack


class ChangeSetNotFoundError(LifecycleError):
    """No change set matching the request exists."""


class InvalidResponseError(LifecycleError):
    """A CloudFormation response is missing a field or carries an unknown value."""


class PollTimeoutError(LifecycleError):
    """An operation did not settle before the configured timeout."""

    def __init__(self, entity_id: str, status: Any, elapsed: float):
        super().__init__(
            f"Timed out after {elapsed:.0f}s waiting for {entity_id} "
            f"(last status: {getattr(status, 'value', status)})"
        )
        self.entity_id = entity_id
        self.status = status
        self.elapsed = elapsed


class TemplateRenderError(LifecycleError):
    """The template renderer exited with an error; the message is its stderr."""


class ConfigurationError(LifecycleError):
    """The tool configuration is invalid."""


@dataclass
class Stack:
    """A deployed CloudFormation stack."""

    stack_id: str
    name: str
    status: StackStatus
    status_reason: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)
    change_set_id: Optional[str] = None
    description: Optional[str] = None
    creation_time: Optional[datetime] = None
    last_updated_time: Optional[datetime] = None
    outputs: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class StackSummary:
    """Stack entry returned by ``list_stacks``."""

    stack_id: str
    name: str
    status: StackStatus
    status_reason: Optional[str] = None
    creation_time: Optional[datetime] = None
    last_updated_time: Optional[datetime] = None


@dataclass
class ResourceSummary:
    """Resource entry returned by ``list_stack_resources``."""

    logical_id: str
    resource_type: str
    status: Optional[ResourceStatus]
    physical_id: Optional[str] = None
    status_reason: Optional[str] = None
    last_updated_time: Optional[datetime] = None


@dataclass
class ChangeDetail:
    """One attribute-level change inside a resource change."""

    attribute: Optional[str] = None
    name: Optional[str] = None
    requires_recreation: Optional[RequiresRecreation] = None
    causing_entity: Optional[str] = None
    change_source: Optional[str] = None


@dataclass
class ResourceChange:
    """A resource the change set adds, modifies or removes."""

    logical_id: str
    resource_type: str
    action: ChangeAction
    physical_id: Optional[str] = None
    replacement: Optional[Replacement] = None
    scope: List[str] = field(default_factory=list)
    details: List[ChangeDetail] = field(default_factory=list)


@dataclass
class ChangeSet:
    """A previewable set of stack modifications."""

    change_set_id: str
    name: str
    stack_id: str
    stack_name: str
    status: ChangeSetStatus
    status_reason: Optional[str] = None
    execution_status: Optional[ExecutionStatus] = None
    changes: List[ResourceChange] = field(default_factory=list)


@dataclass
class ChangeSetSummary:
    """Change set entry returned by ``list_change_sets``."""

    change_set_id: str
    name: str
    status: ChangeSetStatus
    execution_status: Optional[ExecutionStatus] = None
    status_reason: Optional[str] = None


@dataclass
class StackEvent:
    """A single entry of a stack's event history."""

    timestamp: Optional[datetime]
    logical_id: Optional[str]
    resource_type: Optional[str]
    resource_status: Optional[ResourceStatus]
    status_reason: Optional[str] = None
    resource_properties: Optional[str] = None


@dataclass(frozen=True)
class ResourceFailure:
    """A resource-level failure extracted from the event stream."""

    resource_type: str
    logical_id: str
    reason: str
    properties: str
