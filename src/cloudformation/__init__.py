"""
CloudFormation stack management utilities.
"""

from .diagnostics import StackDiagnostics, extract_failures
from .poller import StatusPoller
from .stack_manager import StackManager

__all__ = ["StackManager", "StackDiagnostics", "StatusPoller", "extract_failures"]
