"""Subprocess execution with timeout, output capture and working directory.

External tools (gcov) are run through asyncio's subprocess support so that a
hung tool can be killed on timeout. Callers in the sequential extraction loop
use :func:`run_subprocess_blocking`, which drives a private event loop until
the process exits.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    returncode: int
    """Exit code of the process."""

    stdout: str
    """Standard output captured from the process."""

    stderr: str
    """Standard error captured from the process."""

    success: bool
    """True if returncode is 0."""

    timed_out: bool = False
    """True if the process was terminated due to timeout."""

    duration_ms: float = 0.0
    """Actual duration of execution in milliseconds."""


class SubprocessError(Exception):
    """Exception raised when subprocess execution fails."""

    def __init__(self, message: str, result: SubprocessResult) -> None:
        """Initialize with error message and result.

        Args:
            message: Error description.
            result: The SubprocessResult from the failed execution.
        """
        super().__init__(message)
        self.result = result


def _failed(stderr: str) -> SubprocessResult:
    return SubprocessResult(returncode=-1, stdout="", stderr=stderr, success=False)


async def run_subprocess(
    command: Sequence[str],
    *,
    cwd: Path | str | None = None,
    timeout: float = 300.0,
    env: dict[str, str] | None = None,
    check: bool = False,
) -> SubprocessResult:
    """Execute a command in a subprocess with timeout and error handling.

    Args:
        command: Command and arguments as a sequence (e.g. ``['gcov', 'a.c']``).
        cwd: Working directory for the subprocess. Defaults to current directory.
        timeout: Maximum seconds to wait for completion.
        env: Extra environment variables, merged over the current environment.
        check: If True, raise SubprocessError on non-zero exit code.

    Returns:
        SubprocessResult with exit code, output, and metadata.

    Raises:
        SubprocessError: If the command cannot be started, or check=True and
            it returns a non-zero exit code.
        ValueError: If command is empty, timeout is invalid or cwd is missing.
    """
    if not command:
        raise ValueError("Command cannot be empty")

    if timeout <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout}")

    work_dir = Path(cwd).resolve() if cwd else Path.cwd()
    if not work_dir.exists():
        raise ValueError(f"Working directory does not exist: {work_dir}")

    full_env = {**os.environ, **env} if env else None

    logger.debug(
        "Running subprocess: %s (cwd=%s, timeout=%s)",
        " ".join(str(c) for c in command),
        work_dir,
        timeout,
    )

    start_time = time.perf_counter()
    timed_out = False

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=work_dir,
            env=full_env,
        )
    except FileNotFoundError as exc:
        logger.error("Command not found: %s", command[0])
        raise SubprocessError(f"Command not found: {command[0]}", result=_failed(str(exc))) from exc
    except OSError as exc:
        message = f"Cannot execute {command[0]}: {exc}"
        raise SubprocessError(message, result=_failed(str(exc))) from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        logger.warning("Subprocess timed out after %s seconds", timeout)
        timed_out = True
        try:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass  # Process already terminated

        stdout_bytes = b""
        stderr_bytes = b"Process timed out and was killed"

    duration_ms = (time.perf_counter() - start_time) * 1000

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")
    returncode = process.returncode if process.returncode is not None else -1
    if timed_out and returncode == 0:
        returncode = -1

    result = SubprocessResult(
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
        success=(returncode == 0 and not timed_out),
        timed_out=timed_out,
        duration_ms=duration_ms,
    )

    logger.debug(
        "Subprocess completed: returncode=%d, duration=%.2fms, success=%s",
        returncode,
        duration_ms,
        result.success,
    )

    if check and not result.success:
        raise SubprocessError(
            f"Command failed with exit code {returncode}: {' '.join(str(c) for c in command)}",
            result=result,
        )

    return result


def run_subprocess_blocking(
    command: Sequence[str],
    *,
    cwd: Path | str | None = None,
    timeout: float = 300.0,
    env: dict[str, str] | None = None,
    check: bool = False,
) -> SubprocessResult:
    """Run :func:`run_subprocess` to completion from synchronous code."""
    return asyncio.run(run_subprocess(command, cwd=cwd, timeout=timeout, env=env, check=check))
