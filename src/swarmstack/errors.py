"""
Exceptions raised by the installer.
"""
from typing import List, Optional


class SwarmstackError(Exception):
    """Base class for every installer error."""


class FatalError(SwarmstackError):
    """An error that aborts the whole run."""


class ConfigurationError(FatalError):
    """Required input is missing or invalid."""


class DeploymentError(FatalError):
    """A stack deploy failed."""

    def __init__(self, stage: str, message: str, applied: Optional[List[str]] = None):
        super().__init__(f"Stack '{stage}' failed to deploy: {message}")
        self.stage = stage
        self.applied = applied or []


class CommandError(SwarmstackError):
    """
    An external command exited with a non-zero status.
    """
    def __init__(self, command: List[str], returncode: int, stdout: str = "", stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        detail = self.stderr.strip() or self.stdout.strip() or f"exit code {returncode}"
        super().__init__(f"{command[0]} exited with {returncode}: {detail}")

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return f"{self.stdout}\n{self.stderr}"

    def mentions(self, text: str) -> bool:
        """
        Checks whether the command output contains the given text, case-insensitively.
        """
        return text.lower() in self.output.lower()
