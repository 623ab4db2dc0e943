"""
Errors raised by the panorama query layer.
"""

from typing import Any, Optional


class InvalidQueryError(ValueError):
    """A caller-supplied filter or pagination value is malformed."""

    def __init__(self, field: str, value: Any, message: str, example: Optional[str] = None):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.value = value
        self.message = message
        self.example = example


class QueryCancelledError(RuntimeError):
    """A listing was cancelled before it finished; no partial result exists."""
