"""
Pipeline reporting through GitHub Actions workflow commands.
"""

import logging
from typing import Optional

import click

PACKAGE_LOGGER = "update_stack"


def escape_data(message: str) -> str:
    """Escape a message so the runner reads it as a single command."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def issue_command(command: str, message: str) -> None:
    click.echo(f"::{command}::{escape_data(message)}")


def info(message: str) -> None:
    click.echo(message)


def debug(message: str) -> None:
    issue_command("debug", message)


def warning(message: str) -> None:
    issue_command("warning", message)


def set_failed(message: str) -> None:
    """Report the run as failed. The caller is responsible for the exit code."""
    issue_command("error", message)


class WorkflowCommandHandler(logging.Handler):
    """Route log records to workflow commands by level."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if record.levelno >= logging.ERROR:
                set_failed(message)
            elif record.levelno >= logging.WARNING:
                warning(message)
            elif record.levelno >= logging.INFO:
                info(message)
            else:
                debug(message)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool = False, logger_name: Optional[str] = None) -> logging.Logger:
    """Attach the workflow command handler to the package logger."""
    logger = logging.getLogger(logger_name or PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    if not any(isinstance(h, WorkflowCommandHandler) for h in logger.handlers):
        handler = WorkflowCommandHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
