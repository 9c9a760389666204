"""
Command line entry points.
"""

from .update import main

__all__ = ["main"]
