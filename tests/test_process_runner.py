from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path

import allure
import pytest

from agent_dispatch.providers.errors import ExecutableNotFoundError
from agent_dispatch.providers.process_runner import (
    ProcessRunOptions,
    run_process,
    terminate_process,
)

pytestmark = [
    allure.epic("Provider Dispatch"),
    allure.feature("Process Execution"),
]

_SLEEPER = "import time; time.sleep(30)"


def _python(tmp_path: Path, code: str, **kwargs) -> ProcessRunOptions:
    return ProcessRunOptions(
        executable=sys.executable,
        args=("-c", code),
        cwd=tmp_path,
        prompt=kwargs.pop("prompt", ""),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_prompt_is_delivered_on_stdin_and_streams_captured(tmp_path: Path) -> None:
    code = (
        "import sys\n"
        "data = sys.stdin.read()\n"
        "print(data.upper())\n"
        "print('diagnostics', file=sys.stderr)\n"
        "sys.exit(3)\n"
    )

    result = await run_process(_python(tmp_path, code, prompt="hello agent"))

    assert result.stdout.strip() == "HELLO AGENT"
    assert result.stderr.strip() == "diagnostics"
    assert result.exit_code == 3
    assert result.timed_out is False


@pytest.mark.asyncio
async def test_process_runs_in_requested_directory(tmp_path: Path) -> None:
    result = await run_process(_python(tmp_path, "import os; print(os.getcwd())"))

    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


@pytest.mark.asyncio
async def test_timeout_terminates_and_flags_result(tmp_path: Path) -> None:
    started = time.monotonic()

    result = await run_process(_python(tmp_path, _SLEEPER, timeout_seconds=0.5))

    assert result.timed_out is True
    assert result.exit_code != 0
    assert time.monotonic() - started < 10


@pytest.mark.asyncio
async def test_signal_terminates_without_timeout_flag(tmp_path: Path) -> None:
    signal = asyncio.Event()
    asyncio.get_running_loop().call_later(0.3, signal.set)
    started = time.monotonic()

    result = await run_process(_python(tmp_path, _SLEEPER, timeout_seconds=20, signal=signal))

    assert result.timed_out is False
    assert result.exit_code != 0
    assert time.monotonic() - started < 10


@pytest.mark.asyncio
async def test_fast_process_is_not_affected_by_timer(tmp_path: Path) -> None:
    result = await run_process(
        _python(tmp_path, "print('quick')", timeout_seconds=20, signal=asyncio.Event()),
    )

    assert result.stdout.strip() == "quick"
    assert result.exit_code == 0
    assert result.timed_out is False


@pytest.mark.asyncio
async def test_missing_executable_raises_named_error(tmp_path: Path) -> None:
    options = ProcessRunOptions(
        executable=str(tmp_path / "does-not-exist" / "codex"),
        args=("--quiet",),
        cwd=tmp_path,
        prompt="",
    )

    with pytest.raises(ExecutableNotFoundError) as error:
        await run_process(options)

    assert error.value.executable == options.executable


@pytest.mark.asyncio
async def test_terminate_is_safe_after_exit() -> None:
    process = await asyncio.create_subprocess_exec(sys.executable, "-c", "pass")
    await process.wait()

    await terminate_process(process)
    await terminate_process(process)

    assert process.returncode == 0
