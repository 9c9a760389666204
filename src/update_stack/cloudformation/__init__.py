"""
CloudFormation stack update utilities.
"""

from .diagnostics import StackDiagnostics
from .stack_manager import StackManager

__all__ = ["StackManager", "StackDiagnostics"]
