#!/usr/bin/env python3
"""Run the update-stack command with ``python -m update_stack.cli``."""

from .update import main

if __name__ == "__main__":
    main()
