"""
Presentation of stacks, change sets and failures.
"""

from .console import ConsolePresenter, confirm
from .render import Line

__all__ = ["ConsolePresenter", "Line", "confirm"]
