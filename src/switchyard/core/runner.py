"""Command execution using the invoke library."""

import contextlib
import os
import shlex
import tempfile
from pathlib import Path

from invoke import Context, Result

from switchyard.core.log import logger


class Runner(Context):
    """invoke.Context with a single execute() entry point.

    Output is always captured, never echoed. Commands run through the
    shell, so callers are responsible for quoting.
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
        stdin: str | None = None,
    ) -> Result:
        """Execute a command and return its result.

        Args:
            command: Command string to execute
            cwd: Working directory for command execution
            check: If True, raise on non-zero exit code
            env: Extra environment variables (merged into os.environ)
            stdin: Text fed to the command's standard input. It is
                spooled to a temporary file and redirected, so its
                size is not bounded by the argument list limit.

        Returns:
            invoke.Result with stdout, stderr, exited (return code)

        Raises:
            invoke.UnexpectedExit: If check=True and command
                returns non-zero
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if env:
            kwargs["env"] = env

        if stdin is None:
            return self._execute(command, cwd, kwargs)

        # invoke copies in_stream one byte per poll interval, far too
        # slow for large inputs; the shell redirect streams it instead
        fd, spool = tempfile.mkstemp(prefix="switchyard-", suffix=".in")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(stdin.encode("utf-8", "surrogateescape"))
            return self._execute(
                f"{command} < {shlex.quote(spool)}", cwd, kwargs
            )
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(spool)

    def _execute(self, command: str, cwd: Path | None, kwargs: dict) -> Result:
        logger.spew("Running command", command=command, cwd=str(cwd))
        if cwd:
            with self.cd(str(cwd)):
                result = self.run(command, **kwargs)
        else:
            result = self.run(command, **kwargs)

        logger.spew(
            "Command finished", command=command, exited=result.exited
        )
        return result
