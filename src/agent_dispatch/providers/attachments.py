"""Attachment path canonicalization and guideline classification."""

from __future__ import annotations

import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase


@dataclass(frozen=True, slots=True)
class ClassifiedAttachments:
    """Disjoint guideline/plain split of a canonical attachment set."""

    guidelines: tuple[str, ...]
    plain: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.guidelines and not self.plain


def canonicalize_path(raw_path: str | os.PathLike[str]) -> str:
    """Return the absolute, normalized form of *raw_path* relative to the cwd."""

    return os.path.abspath(os.fspath(raw_path))


def normalize_attachments(
    attachments: Iterable[str | os.PathLike[str]] | None,
) -> tuple[str, ...] | None:
    """De-duplicate attachments by canonical path, first occurrence wins.

    Returns ``None`` when there is nothing to attach.
    """

    if not attachments:
        return None
    deduped: list[str] = []
    seen: set[str] = set()
    for attachment in attachments:
        absolute_path = canonicalize_path(attachment)
        key = os.path.normcase(absolute_path)
        if key in seen:
            continue
        seen.add(key)
        deduped.append(absolute_path)
    return tuple(deduped) if deduped else None


def merge_attachments(
    attachment_sets: Iterable[Sequence[str] | None],
) -> tuple[str, ...] | None:
    """Union of several attachment sets, canonical and ordered by first sighting."""

    combined: list[str] = []
    for attachment_set in attachment_sets:
        if attachment_set:
            combined.extend(attachment_set)
    return normalize_attachments(combined)


def is_guideline_path(path: str, patterns: Sequence[str] | None) -> bool:
    """Match the forward-slash form of *path* against shell-style *patterns*.

    Matching is ``fnmatch`` style, not path-segment aware: ``*`` also spans
    ``/``, so ``*.md`` matches a ``.md`` file at any depth.
    """

    if not patterns:
        return False
    normalized = path.replace(os.sep, "/").replace("\\", "/")
    return any(fnmatchcase(normalized, pattern) for pattern in patterns)


def classify_attachments(
    attachments: Sequence[str] | None,
    patterns: Sequence[str] | None = None,
    overrides: Iterable[str] | None = None,
) -> ClassifiedAttachments:
    """Split attachments into guideline and plain lists, preserving input order.

    A path in *overrides* is a guideline unconditionally. Otherwise its
    forward-slash form is matched against every glob in *patterns*.
    """

    if not attachments:
        return ClassifiedAttachments(guidelines=(), plain=())

    override_keys = {os.path.normcase(canonicalize_path(path)) for path in overrides or ()}
    guidelines: list[str] = []
    plain: list[str] = []
    seen: set[str] = set()
    for attachment in attachments:
        absolute_path = canonicalize_path(attachment)
        key = os.path.normcase(absolute_path)
        if key in seen:
            continue
        seen.add(key)
        if key in override_keys or is_guideline_path(absolute_path, patterns):
            guidelines.append(absolute_path)
        else:
            plain.append(absolute_path)
    return ClassifiedAttachments(guidelines=tuple(guidelines), plain=tuple(plain))


def collect_guideline_files(
    attachments: Sequence[str] | None,
    patterns: Sequence[str] | None = None,
    overrides: Iterable[str] | None = None,
) -> tuple[str, ...]:
    return classify_attachments(attachments, patterns, overrides).guidelines
