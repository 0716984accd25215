"""Error types shared by every skillctl layer.

Two kinds of failure reach the command boundary:

- ``ConfigurationError`` -- user-fixable problems (bad skill id, unknown
  target, missing root, invalid ignore pattern, unreadable config file).
- ``ExecutionError`` -- environment or defect problems (I/O failure,
  unsupported file type, a plan operation missing a required path).

Both carry an optional ``hint`` with a corrective action the user can take.
The CLI maps each kind to its own exit code.
"""

from __future__ import annotations


class SkillctlError(Exception):
    """Base class for all reported skillctl failures.

    Attributes:
        message: Human-readable description of the failure.
        hint: Optional corrective action shown as ``help:`` by the CLI.
    """

    exit_code = 1

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        return self.message


class ConfigurationError(SkillctlError):
    """User-fixable configuration or input problem."""

    exit_code = 3


class ExecutionError(SkillctlError):
    """Failure while reading or mutating the filesystem."""

    exit_code = 4


def wrap_os_error(message: str, exc: OSError) -> ExecutionError:
    """Build an ``ExecutionError`` whose hint is the underlying OS error."""
    detail = exc.strerror or str(exc)
    return ExecutionError(message, hint=detail)
