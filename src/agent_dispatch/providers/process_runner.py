"""Subprocess execution with timeout and external cancellation."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from agent_dispatch.providers.errors import ExecutableNotFoundError

logger = logging.getLogger(__name__)

_TERMINATE_GRACE_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Captured outcome of one process spawn."""

    stdout: str
    stderr: str
    exit_code: int
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class ProcessRunOptions:
    """Inputs for one backend process run."""

    executable: str
    args: tuple[str, ...]
    cwd: Path
    prompt: str
    timeout_seconds: float | None = None
    env: Mapping[str, str] | None = None
    signal: asyncio.Event | None = None


async def run_process(options: ProcessRunOptions) -> ExecutionResult:
    """Spawn the backend, feed *prompt* on stdin and collect both streams.

    A timer and the external *signal* race the process. Either one requests
    termination; only the timer marks the result as timed out.
    """

    try:
        process = await asyncio.create_subprocess_exec(
            options.executable,
            *options.args,
            cwd=str(options.cwd),
            env=dict(options.env) if options.env is not None else os.environ.copy(),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as error:
        raise ExecutableNotFoundError(
            f"Executable not found: {options.executable}",
            executable=options.executable,
        ) from error
    logger.debug("Spawned %s (pid=%s)", options.executable, process.pid)

    communicate = asyncio.ensure_future(process.communicate(options.prompt.encode("utf-8")))
    waiters: set[asyncio.Future] = {communicate}
    timer: asyncio.Future | None = None
    cancelled: asyncio.Future | None = None
    if options.timeout_seconds is not None and options.timeout_seconds > 0:
        timer = asyncio.ensure_future(asyncio.sleep(options.timeout_seconds))
        waiters.add(timer)
    if options.signal is not None:
        cancelled = asyncio.ensure_future(options.signal.wait())
        waiters.add(cancelled)

    timed_out = False
    try:
        done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        if communicate not in done:
            if timer is not None and timer in done:
                timed_out = True
                logger.debug("Process %s exceeded %ss", process.pid, options.timeout_seconds)
            else:
                logger.debug("Process %s cancelled by caller signal", process.pid)
            await terminate_process(process)
        stdout_bytes, stderr_bytes = await communicate
    finally:
        for waiter in (timer, cancelled):
            if waiter is not None and not waiter.done():
                waiter.cancel()
        if not communicate.done():
            communicate.cancel()
            await asyncio.shield(terminate_process(process))

    return ExecutionResult(
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        exit_code=process.returncode if process.returncode is not None else -1,
        timed_out=timed_out,
    )


async def terminate_process(process: asyncio.subprocess.Process) -> None:
    """Stop *process*; a no-op when it has already exited."""

    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=_TERMINATE_GRACE_SECONDS)
    except asyncio.TimeoutError:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()
