"""
Wait for CloudFormation stacks and change sets to settle.
"""

import logging
import time
from typing import Any, Callable, Optional, Tuple

from .models import (
    UNKNOWN_REASON,
    ChangeSet,
    ChangeSetStatus,
    PollTimeoutError,
    Stack,
    StackStatus,
)
from .stack_manager import StackManager

logger = logging.getLogger(__name__)

# REVIEW_IN_PROGRESS is settled: the stack awaits a decision on its change set.
STACK_IN_PROGRESS = frozenset(
    {
        StackStatus.CREATE_IN_PROGRESS,
        StackStatus.DELETE_IN_PROGRESS,
        StackStatus.IMPORT_IN_PROGRESS,
        StackStatus.IMPORT_ROLLBACK_IN_PROGRESS,
        StackStatus.ROLLBACK_IN_PROGRESS,
        StackStatus.UPDATE_COMPLETE_CLEANUP_IN_PROGRESS,
        StackStatus.UPDATE_IN_PROGRESS,
        StackStatus.UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS,
        StackStatus.UPDATE_ROLLBACK_IN_PROGRESS,
    }
)

CHANGE_SET_IN_PROGRESS = frozenset(
    {
        ChangeSetStatus.CREATE_IN_PROGRESS,
        ChangeSetStatus.CREATE_PENDING,
        ChangeSetStatus.DELETE_IN_PROGRESS,
        ChangeSetStatus.DELETE_PENDING,
    }
)


def stack_in_progress(status: StackStatus) -> bool:
    """Check whether a stack status means an operation is running."""
    return status in STACK_IN_PROGRESS


def change_set_in_progress(status: ChangeSetStatus) -> bool:
    """Check whether a change set status means an operation is running."""
    return status in CHANGE_SET_IN_PROGRESS


class StatusPoller:
    """Poll an entity until its status leaves the "in progress" set.

    Every query is attempted once; errors propagate to the caller. Without a
    timeout the loop only ends when the remote status settles.
    """

    def __init__(
        self,
        manager: StackManager,
        poll_interval: float = 5.0,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the poller.

        Args:
            manager: Stack manager used to query stacks and change sets
            poll_interval: Seconds to sleep between two queries
            timeout: Seconds after which waiting fails, None to wait forever
            sleep: Sleep function, replaceable in tests
            clock: Monotonic clock, replaceable in tests
        """
        self.manager = manager
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    def wait_for(
        self,
        entity_id: str,
        query: Callable[[str], Any],
        classify: Callable[[Any], bool],
    ) -> Any:
        """Query ``entity_id`` until ``classify`` reports it settled.

        ``query`` returns an object carrying ``status``; the last observed
        object is returned.

        Raises:
            PollTimeoutError: if the timeout elapses before the entity settles.
        """
        started = self._clock()
        entity = query(entity_id)
        if not classify(entity.status):
            return entity

        logger.info(f"Waiting for {entity_id} ({entity.status.value})...")
        while classify(entity.status):
            if self.timeout is not None:
                elapsed = self._clock() - started
                if elapsed + self.poll_interval > self.timeout:
                    raise PollTimeoutError(entity_id, entity.status, elapsed)
            self._sleep(self.poll_interval)
            entity = query(entity_id)
            logger.debug(f"{entity_id} status: {entity.status.value}")

        logger.info(f"{entity_id} settled in {entity.status.value}")
        return entity

    def wait_until_settled(
        self,
        entity_id: str,
        query: Callable[[str], Any],
        classify: Callable[[Any], bool],
    ) -> Tuple[Any, str]:
        """Wait like :meth:`wait_for` and return ``(status, reason)``."""
        entity = self.wait_for(entity_id, query, classify)
        return entity.status, entity.status_reason or UNKNOWN_REASON

    def wait_for_stack(self, stack: str) -> Stack:
        """Wait until no operation is running on a stack."""
        return self.wait_for(stack, self.manager.describe_stack, stack_in_progress)

    def wait_for_change_set(self, change_set_id: str) -> ChangeSet:
        """Wait until a change set is created or deleted."""
        return self.wait_for(
            change_set_id, self.manager.describe_change_set, change_set_in_progress
        )
