"""
Process execution primitive for the CLI driver.

Commands are always passed as argument lists and never through a shell, so
values coming from callers (labels, env values, commands) need no quoting.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from orchestration.exceptions import BackendError, CommandTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Captured outcome of a finished command."""

    exit_code: int
    stdout: str
    stderr: str


class CommandRunner:
    """Runs a command to completion and captures its output."""

    def run(
        self,
        args: List[str],
        input: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """
        Run `args` and wait for it to exit.

        Args:
            args: Executable and arguments
            input: Text written to the command's stdin
            timeout: Seconds to wait before killing the command, None for no limit

        Returns:
            CommandResult with the exit code and decoded output

        Raises:
            CommandTimeoutError: If the command was killed after `timeout`
            BackendError: If the executable cannot be started
        """
        logger.debug("Running command: %s", args[:3])
        try:
            process = subprocess.run(
                args,
                input=input,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("Command %s timed out after %ss", args[:3], timeout)
            raise CommandTimeoutError(timeout) from e
        except OSError as e:
            logger.error("Failed to start command %s: %s", args[0], e)
            raise BackendError(f"Failed to run {args[0]}: {e}") from e

        return CommandResult(
            exit_code=process.returncode,
            stdout=process.stdout or "",
            stderr=process.stderr or "",
        )
