"""Synchronous execution of external commands."""

import logging
import os
import subprocess
from pathlib import Path
from typing import IO, Mapping, Optional, Sequence, Union

from gitdriver.config import is_verbose
from gitdriver.git.exceptions import GitException

logger = logging.getLogger(__name__)


class ProcessRunner:
    """
    Run a process to completion and hand its output to caller-supplied sinks.

    A non-zero exit status is returned, not raised: callers decide what a
    failure means. There is no timeout; a hung process blocks the caller.
    """

    def __init__(self, verbose: Optional[bool] = None):
        self.verbose = is_verbose() if verbose is None else verbose

    def launch(
        self,
        args: Sequence[str],
        cwd: Union[str, Path],
        env: Optional[Mapping[str, str]] = None,
        stdout: Optional[IO[str]] = None,
        stderr: Optional[IO[str]] = None,
    ) -> int:
        """
        Run a command.

        Args:
            args: Executable followed by its arguments
            cwd: Working directory
            env: Variables overlaid on the current process environment
            stdout: Text stream receiving standard output
            stderr: Text stream receiving standard error

        Returns:
            The exit status

        Raises:
            GitException: If the process cannot be started
        """
        full_env = {}
        full_env.update(os.environ)
        if env:
            full_env.update(env)

        if self.verbose:
            logger.debug(f">>> {' '.join(args)} (in {cwd})")

        try:
            result = subprocess.run(
                list(args),
                cwd=str(cwd),
                env=full_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise GitException(
                f"Error performing command: {' '.join(args)}\n{e}", e
            )

        if stdout is not None and result.stdout:
            stdout.write(result.stdout)
        if stderr is not None and result.stderr:
            stderr.write(result.stderr)

        if self.verbose and result.returncode != 0:
            logger.debug(f"<<< exit status {result.returncode}: {result.stderr}")

        return result.returncode
