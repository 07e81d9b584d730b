"""Exception hierarchy for switchyard operations.

Every error is surfaced to the caller as-is; nothing here is retried.
"""


class SwitchyardError(Exception):
    """Base exception for all switchyard errors."""

    pass


class AlreadyExistsError(SwitchyardError):
    """A repository or branch already exists at the target."""

    pass


class UnnecessaryMergeError(SwitchyardError):
    """Absorb target is already contained in head."""

    def __init__(self, message: str = "Nothing to absorb: already up to date."):
        super().__init__(message)


class UnsupportedOperationError(SwitchyardError):
    """Operation is not valid for the given inputs."""

    pass


class CurrentlyMergingError(SwitchyardError):
    """Operation needs a clean state but an absorb is in progress."""

    def __init__(
        self,
        message: str = "An absorb is in progress. Resolve it first.",
    ):
        super().__init__(message)


class NotMergingError(SwitchyardError):
    """Resolve was requested with no absorb in progress."""

    def __init__(self, message: str = "No absorb in progress."):
        super().__init__(message)


class BranchNotFoundError(SwitchyardError):
    """Branch does not exist (or head is not on a branch)."""

    def __init__(self, name: str | None = None):
        self.name = name
        if name is None:
            super().__init__("Head is not on a branch.")
        else:
            super().__init__(f"Branch not found: {name}")


class BackendError(SwitchyardError):
    """A git command failed.

    Attributes:
        command: The command line that was executed
        exited: Exit code returned by git
        stderr: Captured error output
    """

    def __init__(
        self,
        message: str,
        command: str | None = None,
        exited: int | None = None,
        stderr: str = "",
    ):
        self.command = command
        self.exited = exited
        self.stderr = stderr
        detail = f"{message}"
        if command is not None:
            detail += f"\nCommand: {command}\nExit code: {exited}"
        if stderr:
            detail += f"\nstderr: {stderr.strip()}"
        super().__init__(detail)


__all__ = [
    "SwitchyardError",
    "AlreadyExistsError",
    "UnnecessaryMergeError",
    "UnsupportedOperationError",
    "CurrentlyMergingError",
    "NotMergingError",
    "BranchNotFoundError",
    "BackendError",
]
