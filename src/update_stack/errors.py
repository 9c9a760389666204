"""
Exceptions raised while updating a stack.
"""


class UpdateStackError(Exception):
    """Base class for stack update failures."""


class InputValidationError(UpdateStackError):
    """An action input could not be parsed or failed validation."""


class WaitTimeoutError(UpdateStackError):
    """A resource did not reach its terminal state within the wait bound."""


class ChangeSetFailedError(UpdateStackError):
    """The change-set reached a failure state."""


class StackUpdateFailedError(UpdateStackError):
    """The stack reached a failure or rollback state."""
