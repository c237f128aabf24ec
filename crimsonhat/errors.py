"""Exception hierarchy for crimsonhat."""

from typing import Optional, Sequence


class CrimsonhatError(RuntimeError):
    """Base class for every error raised by the tool."""


class PrerequisiteError(CrimsonhatError):
    """A start-up check failed. The run must stop immediately."""


class NonFatalError(CrimsonhatError):
    """A best-effort operation failed; the caller warns and carries on."""


class CommandError(CrimsonhatError):
    """An external command failed or could not be started."""

    def __init__(
        self,
        argv: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        cmd_str = " ".join(self.argv)
        if returncode is None:
            message = f"Command not found: {self.argv[0] if self.argv else cmd_str}"
        else:
            message = f"Command '{cmd_str}' failed with code {returncode}."
            if stderr.strip():
                message += f" Stderr: {stderr.strip()}"
        super().__init__(message)
