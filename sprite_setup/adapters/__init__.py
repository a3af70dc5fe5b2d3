"""Adapters — how commands reach the machine.

Public re-exports for convenient access.
"""

from sprite_setup.adapters.base import Executor
from sprite_setup.adapters.mock import MockCall, MockExecutor
from sprite_setup.adapters.shell.command import ShellExecutor

__all__ = [
    "Executor",
    "MockCall",
    "MockExecutor",
    "ShellExecutor",
]
