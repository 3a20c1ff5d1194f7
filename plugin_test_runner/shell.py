"""Run external commands as asyncio subprocesses."""

import asyncio
import contextlib
import logging
import os
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CommandResult:
    """Captured outcome of a finished command."""

    args: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    duration: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Stderr when present, otherwise stdout, stripped."""
        return self.stderr.strip() or self.stdout.strip()


async def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run a command to completion and capture its output.

    Args:
        args: Program and arguments (no shell involved)
        cwd: Working directory for the process
        env: Extra environment variables layered over the current environment
        timeout: Seconds to wait before killing the process

    Returns:
        The captured command result

    Raises:
        OSError: If the process cannot be started
        TimeoutError: If the command does not finish within timeout

    """
    log.debug("Running command: %s (cwd=%s)", " ".join(args), cwd)
    start = time.monotonic()

    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env={**os.environ, **env} if env else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise TimeoutError(
            f"Command did not complete within {timeout} seconds: {' '.join(args)}"
        ) from None

    return CommandResult(
        args=tuple(args),
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
        duration=time.monotonic() - start,
    )
