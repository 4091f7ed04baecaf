"""
Process Runner — Run one external command under a hard timeout.

The child inherits stdin/stdout/stderr so git progress is visible live.
If the timeout fires first the child is sent SIGKILL and reaped.
Exactly one outcome per call: return (exit 0), NonZeroExit, SpawnError
or ProcessTimeout. The child is never left running once we return.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from ..errors import NonZeroExit, ProcessTimeout, SpawnError, redact_credentials

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessSpec:
    """One invocation: command, arguments, working directory, timeout."""

    command: str
    arguments: Sequence[str]
    working_directory: Path
    timeout: float

    @property
    def argv(self) -> List[str]:
        return [self.command, *self.arguments]


async def run_process(spec: ProcessSpec) -> None:
    """
    Spawn `spec` and wait for it.

    Raises:
        SpawnError: the executable could not be started
        NonZeroExit: the process exited with a non-zero code
        ProcessTimeout: the process was killed after spec.timeout seconds
    """
    argv = spec.argv
    logger.debug(
        f"Running {redact_credentials(' '.join(argv))} in {spec.working_directory}"
    )

    try:
        process = await asyncio.create_subprocess_exec(
            *argv, cwd=str(spec.working_directory)
        )
    except (OSError, ValueError, TypeError) as e:
        # ValueError/TypeError: argv the OS cannot accept (e.g. embedded NUL)
        raise SpawnError(argv, e) from e

    try:
        code = await asyncio.wait_for(process.wait(), timeout=spec.timeout)
    except asyncio.TimeoutError:
        raise ProcessTimeout(argv, spec.timeout) from None
    finally:
        # Covers timeout and cancellation alike
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()

    if code != 0:
        raise NonZeroExit(argv, code)
