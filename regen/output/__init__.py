"""Output abstraction layer."""

from .console import ConsoleProtocol, MockConsole, RichConsole, Style
from .outputs import OutputsError, WorkflowOutputs

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputsError",
    "RichConsole",
    "Style",
    "WorkflowOutputs",
]
