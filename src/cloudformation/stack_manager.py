"""
CloudFormation stack management operations.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import boto3
from botocore.exceptions import ClientError

from .models import (
    ChangeAction,
    ChangeDetail,
    ChangeSet,
    ChangeSetNotFoundError,
    ChangeSetStatus,
    ChangeSetSummary,
    ChangeSetType,
    ExecutionStatus,
    InvalidResponseError,
    Replacement,
    RequiresRecreation,
    ResourceChange,
    ResourceStatus,
    ResourceSummary,
    Stack,
    StackEvent,
    StackNotFoundError,
    StackStatus,
    StackSummary,
)

logger = logging.getLogger(__name__)

E = TypeVar("E")


def change_set_name(stack_name: str, now: Optional[datetime] = None) -> str:
    """Build a change set name that is unique per submission instant."""
    now = now or datetime.now(timezone.utc)
    return f"{stack_name}-{now.strftime('%Y%m%d-%H%M%S-%f')}"


def _require(data: Dict[str, Any], key: str, context: str) -> Any:
    if data.get(key) is None:
        raise InvalidResponseError(f"{context} without {key}")
    return data[key]


def _enum(enum_cls: Type[E], value: Optional[str], context: str) -> Optional[E]:
    if value is None:
        return None
    try:
        return enum_cls(value)  # type: ignore[call-arg]
    except ValueError:
        raise InvalidResponseError(
            f"{context} has unrecognized {enum_cls.__name__} {value!r}"
        ) from None


def _status(value: Optional[str], context: str) -> Optional[ResourceStatus]:
    """Parse a resource status, mapping values this tool does not know to None."""
    if value is None:
        return None
    try:
        return ResourceStatus(value)
    except ValueError:
        logger.debug(f"{context} has unrecognized status {value!r}")
        return None


def _is_not_found(error: ClientError) -> bool:
    return "does not exist" in str(error)


class StackManager:
    """Manage CloudFormation stack operations."""

    def __init__(self, region: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize stack manager.

        Args:
            region: AWS region (falls back to the session default)
            profile: AWS profile to use
        """
        self.region = region
        self.profile = profile

        session_args = {}
        if region:
            session_args["region_name"] = region
        if profile:
            session_args["profile_name"] = profile

        session = boto3.Session(**session_args)
        self.cloudformation = session.client("cloudformation")

    # Stacks

    def describe_stack(self, stack: str) -> Stack:
        """Describe a stack by name or id.

        Raises:
            StackNotFoundError: if CloudFormation does not know the stack.
        """
        try:
            response = self.cloudformation.describe_stacks(StackName=stack)
        except ClientError as e:
            if _is_not_found(e):
                raise StackNotFoundError(stack) from e
            raise
        logger.debug(f"Stack description: {response}")

        stacks = _require(response, "Stacks", "DescribeStacks response")
        if not stacks:
            raise InvalidResponseError("DescribeStacks returned an empty stacks list")
        return self._parse_stack(stacks[0])

    def list_stacks(
        self, status_filter: Optional[List[StackStatus]] = None
    ) -> List[StackSummary]:
        """List stack summaries in server order, optionally filtered by status."""
        params: Dict[str, Any] = {}
        if status_filter:
            params["StackStatusFilter"] = [status.value for status in status_filter]

        summaries = []
        paginator = self.cloudformation.get_paginator("list_stacks")
        for page in paginator.paginate(**params):
            for summary in page.get("StackSummaries", []):
                summaries.append(
                    StackSummary(
                        stack_id=_require(summary, "StackId", "Stack summary"),
                        name=_require(summary, "StackName", "Stack summary"),
                        status=_enum(
                            StackStatus,
                            _require(summary, "StackStatus", "Stack summary"),
                            "Stack summary",
                        ),
                        status_reason=summary.get("StackStatusReason"),
                        creation_time=summary.get("CreationTime"),
                        last_updated_time=summary.get("LastUpdatedTime"),
                    )
                )
        return summaries

    def list_stack_resources(self, stack_id: str) -> List[ResourceSummary]:
        """List the resources of a stack."""
        resources = []
        paginator = self.cloudformation.get_paginator("list_stack_resources")
        for page in paginator.paginate(StackName=stack_id):
            for resource in page.get("StackResourceSummaries", []):
                context = "Stack resource"
                resources.append(
                    ResourceSummary(
                        logical_id=_require(resource, "LogicalResourceId", context),
                        resource_type=_require(resource, "ResourceType", context),
                        status=_status(
                            _require(resource, "ResourceStatus", context), context
                        ),
                        physical_id=resource.get("PhysicalResourceId"),
                        status_reason=resource.get("ResourceStatusReason"),
                        last_updated_time=resource.get("LastUpdatedTimestamp"),
                    )
                )
        return resources

    def list_stack_events(self, stack: str) -> List[StackEvent]:
        """Get every event of a stack, pages concatenated in server order."""
        logger.info(f"Describe stack events {stack}")
        events = []
        paginator = self.cloudformation.get_paginator("describe_stack_events")
        for page in paginator.paginate(StackName=stack):
            for event in page.get("StackEvents", []):
                events.append(
                    StackEvent(
                        timestamp=event.get("Timestamp"),
                        logical_id=event.get("LogicalResourceId"),
                        resource_type=event.get("ResourceType"),
                        resource_status=_status(
                            event.get("ResourceStatus"), "Stack event"
                        ),
                        status_reason=event.get("ResourceStatusReason"),
                        resource_properties=event.get("ResourceProperties"),
                    )
                )
        logger.debug(f"Describe stack events result: {len(events)} events")
        return events

    def delete_stack(self, stack: str) -> None:
        """Request deletion of a stack; does not wait."""
        logger.info(f"Delete stack {stack}...")
        result = self.cloudformation.delete_stack(StackName=stack)
        logger.debug(f"Deletion result: {result}")

    # Change sets

    def create_change_set(
        self,
        stack_name: str,
        name: str,
        change_set_type: ChangeSetType,
        template_body: str,
        capabilities: Optional[List[str]] = None,
    ) -> Tuple[str, str]:
        """Submit a change set.

        Returns:
            Tuple of (change_set_id, stack_id)
        """
        logger.info(f"Create {change_set_type.value} change set {name} for {stack_name}")
        params: Dict[str, Any] = {
            "StackName": stack_name,
            "ChangeSetName": name,
            "ChangeSetType": change_set_type.value,
            "TemplateBody": template_body,
        }
        if capabilities:
            params["Capabilities"] = list(capabilities)

        response = self.cloudformation.create_change_set(**params)
        logger.debug(f"Create change set result: {response}")
        return (
            _require(response, "Id", "CreateChangeSet response"),
            _require(response, "StackId", "CreateChangeSet response"),
        )

    def describe_change_set(self, change_set_id: str) -> ChangeSet:
        """Describe a change set, following pagination of its changes."""
        params: Dict[str, Any] = {"ChangeSetName": change_set_id}
        changes: List[ResourceChange] = []

        while True:
            try:
                response = self.cloudformation.describe_change_set(**params)
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") == "ChangeSetNotFound":
                    raise ChangeSetNotFoundError(
                        f"Change set {change_set_id} does not exist"
                    ) from e
                raise
            logger.debug(f"Change set description: {response}")
            changes.extend(
                self._parse_resource_change(change["ResourceChange"])
                for change in response.get("Changes", [])
                if change.get("ResourceChange")
            )
            if not response.get("NextToken"):
                break
            params["NextToken"] = response["NextToken"]

        context = "Change set"
        return ChangeSet(
            change_set_id=_require(response, "ChangeSetId", context),
            name=_require(response, "ChangeSetName", context),
            stack_id=_require(response, "StackId", context),
            stack_name=_require(response, "StackName", context),
            status=_enum(ChangeSetStatus, _require(response, "Status", context), context),
            status_reason=response.get("StatusReason"),
            execution_status=_enum(
                ExecutionStatus, response.get("ExecutionStatus"), context
            ),
            changes=changes,
        )

    def execute_change_set(self, change_set_id: str) -> None:
        """Start executing a change set; does not wait."""
        logger.info(f"Apply change set {change_set_id}")
        result = self.cloudformation.execute_change_set(ChangeSetName=change_set_id)
        logger.debug(f"Execution result: {result}")

    def delete_change_set(self, change_set_id: str) -> None:
        """Delete a change set."""
        logger.info(f"Delete change set {change_set_id}")
        result = self.cloudformation.delete_change_set(ChangeSetName=change_set_id)
        logger.debug(f"Delete change set result: {result}")

    def list_change_sets(self, stack_name: str) -> List[ChangeSetSummary]:
        """List the change sets of a stack."""
        summaries = []
        paginator = self.cloudformation.get_paginator("list_change_sets")
        for page in paginator.paginate(StackName=stack_name):
            for summary in page.get("Summaries", []):
                context = "Change set summary"
                summaries.append(
                    ChangeSetSummary(
                        change_set_id=_require(summary, "ChangeSetId", context),
                        name=_require(summary, "ChangeSetName", context),
                        status=_enum(
                            ChangeSetStatus, _require(summary, "Status", context), context
                        ),
                        execution_status=_enum(
                            ExecutionStatus, summary.get("ExecutionStatus"), context
                        ),
                        status_reason=summary.get("StatusReason"),
                    )
                )
        return summaries

    def pending_change_set(self, stack_name: str) -> Optional[ChangeSetSummary]:
        """Get the first change set of a stack that is available for execution."""
        for summary in self.list_change_sets(stack_name):
            if summary.execution_status == ExecutionStatus.AVAILABLE:
                return summary
        return None

    # Parsing

    def _parse_stack(self, data: Dict[str, Any]) -> Stack:
        context = "Stack"
        return Stack(
            stack_id=_require(data, "StackId", context),
            name=_require(data, "StackName", context),
            status=_enum(StackStatus, _require(data, "StackStatus", context), context),
            status_reason=data.get("StackStatusReason"),
            parameters={
                param["ParameterKey"]: param.get("ParameterValue", "")
                for param in data.get("Parameters", [])
            },
            change_set_id=data.get("ChangeSetId"),
            description=data.get("Description"),
            creation_time=data.get("CreationTime"),
            last_updated_time=data.get("LastUpdatedTime"),
            outputs={
                output["OutputKey"]: output["OutputValue"]
                for output in data.get("Outputs", [])
            },
            tags={tag["Key"]: tag["Value"] for tag in data.get("Tags", [])},
        )

    def _parse_resource_change(self, data: Dict[str, Any]) -> ResourceChange:
        context = "Resource change"
        details = []
        for detail in data.get("Details", []):
            target = detail.get("Target", {})
            details.append(
                ChangeDetail(
                    attribute=target.get("Attribute"),
                    name=target.get("Name"),
                    requires_recreation=_enum(
                        RequiresRecreation, target.get("RequiresRecreation"), context
                    ),
                    causing_entity=detail.get("CausingEntity"),
                    change_source=detail.get("ChangeSource"),
                )
            )

        return ResourceChange(
            logical_id=_require(data, "LogicalResourceId", context),
            resource_type=_require(data, "ResourceType", context),
            action=_enum(ChangeAction, _require(data, "Action", context), context),
            physical_id=data.get("PhysicalResourceId"),
            replacement=_enum(Replacement, data.get("Replacement"), context),
            scope=list(data.get("Scope", [])),
            details=details,
        )
