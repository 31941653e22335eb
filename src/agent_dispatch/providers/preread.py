"""Prompt document assembly with the mandatory file preread block."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Sequence

from agent_dispatch.providers.attachments import ClassifiedAttachments, classify_attachments
from agent_dispatch.providers.base import ProviderRequest

USER_QUERY_HEADER = "[[ ## user_query ## ]]"
MISSING_FILE_DIRECTIVE = (
    "If any file is missing, fail with ERROR: missing-file <filename> and stop."
)
APPLY_INSTRUCTIONS_DIRECTIVE = "Then apply system_instructions on the user query below."

_DRIVE_LETTER_PATH = re.compile(r"^[a-zA-Z]:/")


def build_prompt_document(
    request: ProviderRequest,
    attachments: Sequence[str] | None,
    *,
    guideline_patterns: Sequence[str] | None = None,
    guideline_overrides: Iterable[str] | None = None,
) -> str:
    """Render the text sent to a backend for *request*.

    *attachments* are the paths the backend will actually see, which for
    process backends are the workspace mirrors rather than the originals.
    """

    patterns = guideline_patterns if guideline_patterns is not None else request.guideline_patterns
    classified = classify_attachments(attachments, patterns, guideline_overrides)

    parts: list[str] = []
    preread_block = build_preread_block(classified)
    if preread_block:
        parts.extend(["\n", preread_block])
    parts.extend([f"\n{USER_QUERY_HEADER}\n", request.prompt.strip()])
    return "\n".join(parts).strip()


def build_preread_block(classified: ClassifiedAttachments) -> str:
    """Render the file lists a backend must read first, or ``""`` when there are none."""

    if classified.is_empty:
        return ""

    sections: list[str] = []
    if classified.guidelines:
        sections.append(f"Read all guideline files:\n{_render_file_list(classified.guidelines)}.")
    if classified.plain:
        sections.append(f"Read all attachment files:\n{_render_file_list(classified.plain)}.")
    sections.append(MISSING_FILE_DIRECTIVE)
    sections.append(APPLY_INSTRUCTIONS_DIRECTIVE)
    return "\n".join(sections)


def path_to_file_uri(path: str | os.PathLike[str]) -> str:
    raw = os.fspath(path)
    normalized = raw.replace("\\", "/")
    if _DRIVE_LETTER_PATH.match(normalized):
        return f"file:///{normalized}"
    if not os.path.isabs(raw):
        normalized = os.path.abspath(raw).replace("\\", "/")
    if _DRIVE_LETTER_PATH.match(normalized):
        return f"file:///{normalized}"
    return f"file://{normalized}"


def _render_file_list(files: Sequence[str]) -> str:
    return "\n".join(f"* [{os.path.basename(path)}]({path_to_file_uri(path)})" for path in files)
