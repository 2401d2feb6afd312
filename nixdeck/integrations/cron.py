"""
crontab job management.

Jobs are addressed by their index in the filtered job list (comments and
blank lines excluded). Writing a job list rewrites the whole crontab.
"""

import logging
from typing import List

from ..engine.tools import ToolRunner
from ..errors import ErrorCode, NixDeckError, SubprocessFailureError

logger = logging.getLogger(__name__)


class CronManager:
    """List, create and delete cron jobs of the current user."""

    def __init__(self, runner: ToolRunner):
        self.runner = runner

    def list(self) -> List[str]:
        result = self.runner.run(["crontab", "-l"])
        if not result.success:
            # A user without a crontab simply has no jobs
            if "no crontab" in result.stderr:
                return []
            raise SubprocessFailureError("crontab -l", result.returncode, result.stderr)

        return [
            line for line in result.stdout.splitlines()
            if line.strip() and not line.startswith("#")
        ]

    def create(self, schedule: str, command: str) -> List[str]:
        if not schedule.strip() or not command.strip():
            raise NixDeckError(
                code=ErrorCode.INVALID_PARAMS,
                message="Schedule and command must not be empty"
            )

        jobs = self.list()
        jobs.append(f"{schedule} {command}")
        self._write(jobs)
        logger.info(f"Added cron job: {schedule} {command}")
        return jobs

    def delete(self, job_id: str) -> List[str]:
        jobs = self.list()
        try:
            index = int(job_id)
        except ValueError:
            raise NixDeckError(code=ErrorCode.INVALID_PARAMS, message="Invalid job ID")

        if index < 0 or index >= len(jobs):
            raise NixDeckError(code=ErrorCode.INVALID_PARAMS, message="Job ID out of range")

        removed = jobs.pop(index)
        self._write(jobs)
        logger.info(f"Removed cron job: {removed}")
        return jobs

    def _write(self, jobs: List[str]) -> None:
        content = "\n".join(jobs) + "\n"
        self.runner.run(["crontab", "-"], input_text=content, check=True)
