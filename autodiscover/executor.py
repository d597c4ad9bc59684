"""
Shell command execution with a timeout.

Stands in for the interactive session: a command string goes in, its stdout
comes back, and any failure is reported both through an optional callback and
a raised CommandFailure.
"""

import asyncio
import subprocess
from typing import Callable, Optional

import structlog

from .config import settings
from .errors import CommandFailure

logger = structlog.get_logger(__name__)


class CommandExecutor:
    """Runs shell commands in a worker thread."""

    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = (
            default_timeout
            if default_timeout is not None
            else settings.command_timeout_seconds
        )

    def _run_sync(self, command: str, timeout: float) -> str:
        result = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise CommandFailure(
                stderr or f"command exited with status {result.returncode}",
                command=command,
            )
        return result.stdout

    async def run(
        self,
        command: str,
        timeout: Optional[float] = None,
        on_failure: Optional[Callable[[], None]] = None,
    ) -> str:
        """Run ``command`` and return its output verbatim."""
        effective_timeout = timeout if timeout is not None else self.default_timeout
        logger.debug("Executing command", command=command, timeout=effective_timeout)
        try:
            return await asyncio.to_thread(self._run_sync, command, effective_timeout)
        except CommandFailure:
            self._notify(on_failure)
            raise
        except subprocess.TimeoutExpired as e:
            self._notify(on_failure)
            raise CommandFailure(
                f"timed out after {effective_timeout}s", command=command
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            self._notify(on_failure)
            raise CommandFailure(str(e), command=command) from e

    @staticmethod
    def _notify(on_failure: Optional[Callable[[], None]]) -> None:
        if on_failure is not None:
            on_failure()


# Global executor instance
_executor: Optional[CommandExecutor] = None


def get_executor() -> CommandExecutor:
    """Get or create CommandExecutor singleton."""
    global _executor
    if _executor is None:
        _executor = CommandExecutor()
    return _executor
