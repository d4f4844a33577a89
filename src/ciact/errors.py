"""Errors that end a ciact invocation."""

from typing import Optional


class CiActError(Exception):
    pass


class SelectionError(CiActError):
    """The user's choice does not name a known workflow."""


class RunnerError(CiActError):
    """The external workflow runner is missing or exited non-zero."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode
