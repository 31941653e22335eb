"""CLI entrypoint for agent-dispatch."""

import asyncio
from pathlib import Path

import rich_click as click

from agent_dispatch import __version__
from agent_dispatch.config import Settings
from agent_dispatch.providers.base import ProviderRequest
from agent_dispatch.providers.codex import CodexProvider
from agent_dispatch.providers.errors import ProviderError

click.rich_click.USE_MARKDOWN = True


@click.group()
@click.version_option(version=__version__, prog_name="agent-dispatch")
def agent_dispatch() -> None:
    """Agent backend dispatch CLI."""


@agent_dispatch.command("smoke")
@click.option(
    "--target",
    "target_name",
    default=None,
    help="Target name; defaults to AGENT_DISPATCH_TARGET.",
)
@click.option("--executable", default=None, help="Override the Codex executable.")
@click.option("--model", default=None, help="Optional model override.")
@click.option(
    "--prompt",
    default="Reply with exactly: OK",
    show_default=True,
    help="Synthetic prompt used for run check.",
)
@click.option(
    "--attachment",
    "attachments",
    multiple=True,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="Attachment file. Can be repeated.",
)
@click.option(
    "--guideline-pattern",
    "guideline_patterns",
    multiple=True,
    help="Glob marking attachments as guideline files. Can be repeated.",
)
@click.option(
    "--expect-substring",
    default="OK",
    show_default=True,
    help="Substring required in the answer for a successful run check.",
)
@click.option(
    "--timeout-seconds",
    type=click.IntRange(min=1, max=600),
    default=None,
    help="Timeout for the run check.",
)
@click.option("--skip-run", is_flag=True, default=False, help="Only check environment readiness.")
def smoke(  # noqa: PLR0913
    target_name: str | None,
    executable: str | None,
    model: str | None,
    prompt: str,
    attachments: tuple[Path, ...],
    guideline_patterns: tuple[str, ...],
    expect_substring: str,
    timeout_seconds: int | None,
    skip_run: bool,
) -> None:
    """Check Codex readiness and run one synthetic prompt through the process backend."""

    settings = Settings.from_env(target_name=target_name)
    if executable is not None:
        settings.codex.executable = executable
    if model is not None:
        settings.codex.model = model
    if timeout_seconds is not None:
        settings.codex.timeout_seconds = float(timeout_seconds)
    try:
        settings.validate()
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    provider = CodexProvider(settings.target_name, settings.codex)
    request = ProviderRequest(
        prompt=prompt,
        attachments=tuple(str(path) for path in attachments) or None,
        guideline_patterns=guideline_patterns or None,
        eval_case_id="smoke",
    )
    lines, success = asyncio.run(
        _run_smoke(provider, request, expect_substring=expect_substring, skip_run=skip_run),
    )
    _emit_lines(lines)
    if not success:
        raise click.ClickException("Agent smoke check failed.")


async def _run_smoke(
    provider: CodexProvider,
    request: ProviderRequest,
    *,
    expect_substring: str,
    skip_run: bool,
) -> tuple[list[str], bool]:
    try:
        environment = await provider.check_environment()
    except ProviderError as error:
        lines = [f"target={provider.id} ready=no run=skipped", f"error: {error}"]
        return [*lines, "Smoke status: failed"], False

    lines = [f"executable: {environment.executable}", f"config: {environment.config_path}"]
    if skip_run:
        lines.extend([f"target={provider.id} ready=yes run=skipped", "Smoke status: passed"])
        return lines, True

    try:
        response = await provider.invoke(request)
    except ProviderError as error:
        lines.extend(
            [
                f"target={provider.id} ready=yes run=failed",
                f"error: {error}",
                "Smoke status: failed",
            ],
        )
        return lines, False

    if expect_substring not in response.text:
        lines.extend(
            [
                f"target={provider.id} ready=yes run=failed",
                f"error: answer missing expected substring: {expect_substring!r}",
                f"answer: {_truncate(response.text)}",
                "Smoke status: failed",
            ],
        )
        return lines, False

    lines.extend(
        [
            f"target={provider.id} ready=yes run=ok",
            f"answer: {_truncate(response.text)}",
            "Smoke status: passed",
        ],
    )
    return lines, True


def _truncate(value: str, *, limit: int = 240) -> str:
    compact = value.strip().replace("\n", " ")
    if len(compact) <= limit:
        return compact
    return compact[:limit] + "..."


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    agent_dispatch()
