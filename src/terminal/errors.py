"""
Error taxonomy for the dev terminal.

Every error raised on purpose by the pipeline derives from DevTerminalError and
carries the HTTP status the service answers with.
"""

from typing import Optional


class DevTerminalError(Exception):
    """Base class for dev terminal errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(DevTerminalError):
    """Malformed or missing request fields."""

    status_code = 400


class NotFound(DevTerminalError):
    """A referenced dev request does not exist."""

    status_code = 404


class GenerationFailure(DevTerminalError):
    """A build step failed while generating its artifact."""

    def __init__(self, message: str, step_name: Optional[str] = None):
        super().__init__(message)
        self.step_name = step_name


class PersistenceFailure(DevTerminalError):
    """The record store rejected an operation."""
