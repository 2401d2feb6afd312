"""
External tool runner.

The only place NixDeck starts host processes (tar, systemctl, crontab,
hostname, ...). Every call is synchronous, captures stdout/stderr and is
bounded by a timeout.
"""

import logging
import subprocess
from typing import List, Optional, Sequence

from ..errors import SubprocessFailureError, ToolTimeoutError
from ..models import ToolResult
from ..settings import DEFAULT_TOOL_TIMEOUT

logger = logging.getLogger(__name__)


class ToolRunner:
    """Run a host tool and capture its exit status and output."""

    def __init__(self, timeout: float = DEFAULT_TOOL_TIMEOUT):
        """
        Initialize tool runner.

        Args:
            timeout: Seconds to wait before killing a tool
        """
        self.timeout = timeout

    def run(
        self,
        args: Sequence[str],
        input_text: Optional[str] = None,
        check: bool = False,
        timeout: Optional[float] = None
    ) -> ToolResult:
        """
        Run a tool to completion.

        Args:
            args: Command and arguments (no shell)
            input_text: Text written to the tool's stdin
            check: Raise SubprocessFailureError on non-zero exit
            timeout: Override the runner's default timeout

        Returns:
            ToolResult with exit status and decoded output

        Raises:
            SubprocessFailureError: Tool missing, or non-zero exit with check=True
            ToolTimeoutError: Tool did not finish in time
        """
        argv: List[str] = [str(arg) for arg in args]
        command = " ".join(argv)
        limit = self.timeout if timeout is None else timeout

        logger.debug(f"Running: {command}")

        try:
            completed = subprocess.run(
                argv,
                input=input_text,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=limit
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"{command} timed out after {limit}s")
            raise ToolTimeoutError(command, limit) from e
        except OSError as e:
            raise SubprocessFailureError(command, None, f"Failed to execute {argv[0]}: {e}") from e

        result = ToolResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or ""
        )

        if check and not result.success:
            logger.warning(f"{command} exited with status {result.returncode}")
            raise SubprocessFailureError(command, result.returncode, result.stderr)

        return result
