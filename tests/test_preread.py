from __future__ import annotations

from pathlib import Path

import allure
import pytest

from agent_dispatch.providers.base import ProviderRequest
from agent_dispatch.providers.preread import (
    APPLY_INSTRUCTIONS_DIRECTIVE,
    MISSING_FILE_DIRECTIVE,
    USER_QUERY_HEADER,
    build_prompt_document,
    path_to_file_uri,
)

pytestmark = [
    allure.epic("Provider Dispatch"),
    allure.feature("Prompt Document"),
]


def test_document_without_attachments_is_only_the_user_query() -> None:
    document = build_prompt_document(ProviderRequest(prompt="  Explain the diff.  \n"), None)

    assert document == f"{USER_QUERY_HEADER}\n\nExplain the diff."
    assert "Read all" not in document


def test_document_lists_guideline_and_attachment_files(tmp_path: Path) -> None:
    guideline = str(tmp_path / "prompts" / "python.instructions.md")
    attachment = str(tmp_path / "src" / "main.py")
    request = ProviderRequest(
        prompt="Implement feature",
        guideline_patterns=("**/*.instructions.md",),
    )

    document = build_prompt_document(request, (guideline, attachment))

    expected_preread = "\n".join(
        [
            "Read all guideline files:",
            f"* [python.instructions.md]({path_to_file_uri(guideline)}).",
            "Read all attachment files:",
            f"* [main.py]({path_to_file_uri(attachment)}).",
            MISSING_FILE_DIRECTIVE,
            APPLY_INSTRUCTIONS_DIRECTIVE,
        ],
    )
    assert document == f"{expected_preread}\n\n{USER_QUERY_HEADER}\n\nImplement feature"


def test_document_never_lists_a_file_twice(tmp_path: Path) -> None:
    guideline = str(tmp_path / "a.instructions.md")
    plain = str(tmp_path / "b.txt")

    document = build_prompt_document(
        ProviderRequest(prompt="q"),
        (guideline, plain, guideline),
        guideline_patterns=("*.instructions.md",),
    )

    assert document.count("a.instructions.md]") == 1
    guideline_section, attachment_section = document.split("Read all attachment files:")
    assert "a.instructions.md" in guideline_section
    assert "a.instructions.md" not in attachment_section
    assert "b.txt" in attachment_section


def test_document_uses_overrides_over_patterns(tmp_path: Path) -> None:
    renamed = str(tmp_path / "files" / "notes.md.1")

    document = build_prompt_document(
        ProviderRequest(prompt="q", guideline_patterns=("**/guides/*.md",)),
        (renamed,),
        guideline_overrides={renamed},
    )

    assert document.startswith("Read all guideline files:")
    assert "Read all attachment files:" not in document


def test_file_uri_for_drive_letter_paths() -> None:
    assert path_to_file_uri("C:\\work\\specs\\a.md") == "file:///C:/work/specs/a.md"
    assert path_to_file_uri("d:/data/b.txt") == "file:///d:/data/b.txt"


@pytest.mark.skipif(Path("/").anchor != "/", reason="POSIX absolute paths only")
def test_file_uri_for_posix_paths() -> None:
    assert path_to_file_uri("/tmp/work/a b.txt") == "file:///tmp/work/a b.txt"
