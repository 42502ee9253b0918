"""Explicit success/failure results used by the resolution engine."""

from dataclasses import dataclass
from typing import Any

from cmd_box.exceptions import CmdBoxError, ResolutionError


@dataclass
class Resolution:
    """Outcome of an attempt to resolve a value or a plan.

    Fallback chains inspect `success` rather than catching exceptions;
    the failure reason is kept as an (unraised) error so the caller can
    raise it once every alternative has been exhausted.

    Attributes:
        success: Whether a value was produced.
        value: The produced value.
        error: The reason for failure.
    """

    success: bool
    value: Any = None
    error: CmdBoxError | None = None

    @classmethod
    def ok(cls, value: Any) -> "Resolution":
        """Create a successful resolution."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: CmdBoxError) -> "Resolution":
        """Create a failed resolution."""
        return cls(success=False, error=error)

    def unwrap(self) -> Any:
        """Return the value, or raise the failure reason."""
        if not self.success:
            raise self.error or ResolutionError()
        return self.value
