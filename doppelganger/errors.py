"""
Error kinds shared by the mirror services and the HTTP surface.

The user-visible message of every exception here is safe to render:
subprocess output and remote API bodies are logged where they occur and
never become part of ``str(exc)``.
"""

from __future__ import annotations

from typing import Optional


class DoppelgangerError(Exception):
    """Base class for all service-level failures."""


class NotFoundError(DoppelgangerError):
    """The remote provider returned 404 for a repository name."""

    def __init__(self, message: str = "not found"):
        super().__init__(message)


class NotMirroredError(DoppelgangerError):
    """The repository name does not resolve to an on-disk mirror."""

    def __init__(self, message: str = "mirror not found"):
        super().__init__(message)


class RemoteError(DoppelgangerError):
    """Any non-404 failure talking to the remote provider."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider_message: Optional[str] = None,
        errors: Optional[list] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.provider_message = provider_message
        self.errors = errors or []

    @property
    def is_duplicate_hook(self) -> bool:
        """GitHub reports an already registered hook as a single custom validation error."""
        return (
            self.status_code == 422
            and self.provider_message == "Validation Failed"
            and len(self.errors) == 1
            and self.errors[0].get("code") == "custom"
        )


class GitError(DoppelgangerError):
    """A git invocation failed. The message is sanitized."""


class CancelledError(DoppelgangerError):
    """The originating request went away or ran out of time."""

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message)


class ConfigError(DoppelgangerError):
    """Startup configuration is missing or invalid."""


class ExecError(Exception):
    """Raised by the subprocess layer; never shown to users."""


class ExecExit(ExecError):
    """git exited with a non-zero status."""

    def __init__(self, args: list, returncode: int, stderr: str):
        super().__init__(f"{' '.join(args)} exited with {returncode}: {stderr}")
        self.returncode = returncode
        self.stderr = stderr


class ExecSpawn(ExecError):
    """git could not be started or was killed before it finished."""
