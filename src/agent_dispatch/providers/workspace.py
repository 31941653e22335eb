"""Ephemeral per-invocation workspaces for process-based backends."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
from collections.abc import AsyncIterator, Sequence, Set
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from agent_dispatch.providers.attachments import canonicalize_path
from agent_dispatch.providers.errors import AttachmentMirrorError

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "agent-dispatch-codex-"
FILES_DIR = "files"
PROMPT_FILENAME = "prompt.md"


@dataclass(frozen=True, slots=True)
class MirroredAttachments:
    """Workspace copies of a request's attachments."""

    paths: tuple[str, ...] | None
    guideline_mirrors: frozenset[str] = field(default_factory=frozenset)


class WorkspaceManager:
    """Creates, populates and removes isolated invocation directories."""

    def __init__(self, root_dir: Path | None = None, prefix: str = WORKSPACE_PREFIX) -> None:
        self.root_dir = root_dir
        self.prefix = prefix

    async def create(self) -> Path:
        root = str(self.root_dir) if self.root_dir is not None else None
        path = await asyncio.to_thread(tempfile.mkdtemp, prefix=self.prefix, dir=root)
        logger.debug("Created workspace %s", path)
        return Path(path)

    async def mirror(
        self,
        attachments: Sequence[str] | None,
        workspace: Path,
        guideline_originals: Set[str] = frozenset(),
    ) -> MirroredAttachments:
        """Copy attachments into ``<workspace>/files`` keeping input order.

        Base-name collisions get ``.1``, ``.2`` ... suffixes in arrival order,
        skipping any name already taken in this workspace.
        Mirrors whose original path is in *guideline_originals* are returned
        as guideline overrides so classification survives the rename.
        """

        if not attachments:
            return MirroredAttachments(paths=None)

        files_root = workspace / FILES_DIR
        await asyncio.to_thread(files_root.mkdir, parents=True, exist_ok=True)

        mirrored: list[str] = []
        guideline_mirrors: set[str] = set()
        used_names: set[str] = set()
        for attachment in attachments:
            source = canonicalize_path(attachment)
            final_name = _unique_name(os.path.basename(source), used_names)
            used_names.add(final_name)
            destination = canonicalize_path(files_root / final_name)
            try:
                await asyncio.to_thread(shutil.copyfile, source, destination)
            except OSError as error:
                raise AttachmentMirrorError(
                    f"Failed to mirror attachment {source}: {error}",
                    path=source,
                ) from error
            mirrored.append(destination)
            if source in guideline_originals:
                guideline_mirrors.add(destination)

        return MirroredAttachments(
            paths=tuple(mirrored),
            guideline_mirrors=frozenset(guideline_mirrors),
        )

    async def write_prompt(self, workspace: Path, content: str) -> Path:
        prompt_file = workspace / PROMPT_FILENAME
        await asyncio.to_thread(prompt_file.write_text, content, "utf-8")
        return prompt_file

    async def destroy(self, workspace: Path) -> None:
        """Remove *workspace* recursively; failures are logged and swallowed."""

        try:
            await asyncio.to_thread(shutil.rmtree, workspace)
        except FileNotFoundError:
            return
        except OSError as error:
            logger.warning("Failed to remove workspace %s: %s", workspace, error)
            return
        logger.debug("Removed workspace %s", workspace)

    @asynccontextmanager
    async def open(self) -> AsyncIterator[Path]:
        workspace = await self.create()
        try:
            yield workspace
        finally:
            await asyncio.shield(self.destroy(workspace))


def _unique_name(base_name: str, used_names: Set[str]) -> str:
    final_name = base_name
    suffix = 0
    while final_name in used_names:
        suffix += 1
        final_name = f"{base_name}.{suffix}"
    return final_name
