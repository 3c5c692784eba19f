"""Build the in-memory archive tree from enumerated items."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from boardforge.models.enums import OrganizationMode
from boardforge.pipeline.naming import filename_for, root_folder_name, unique_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from boardforge.models import ExportableItem, ExportConfig, ItemCategory, ScriptData

logger = logging.getLogger(__name__)

SCRIPT_FILENAME = "script.json"


class ArchiveRootError(RuntimeError):
    """Raised when the archive root folder cannot be created."""


@dataclass
class ArchiveFile:
    """A file entry; *path* is archive-relative and unique within the tree."""

    path: str
    data: bytes


@dataclass
class ArchiveFolder:
    path: str
    folders: dict[str, ArchiveFolder] = field(default_factory=dict)
    files: list[ArchiveFile] = field(default_factory=list)

    def folder(self, name: str) -> ArchiveFolder:
        """Return the child folder *name*, creating it on first use."""
        if name not in self.folders:
            self.folders[name] = ArchiveFolder(f"{self.path}/{name}")
        return self.folders[name]


class ArchiveTree:
    """Folder/file tree rooted at a single project folder."""

    def __init__(self, root_name: str) -> None:
        if not root_name or "/" in root_name or root_name in (".", ".."):
            msg = f"cannot create archive root folder {root_name!r}"
            raise ArchiveRootError(msg)
        self.root = ArchiveFolder(root_name)
        self._files: list[ArchiveFile] = []
        self._paths: set[str] = set()

    def add_file(self, folder: ArchiveFolder, filename: str, data: bytes) -> ArchiveFile:
        """Register *data* under *folder*, renaming on a path collision."""
        requested = f"{folder.path}/{filename}"
        path = unique_path(requested, self._paths)
        if path != requested:
            logger.warning("Archive path %s already used; writing %s", requested, path)
        entry = ArchiveFile(path=path, data=data)
        folder.files.append(entry)
        self._files.append(entry)
        self._paths.add(path)
        return entry

    def iter_folders(self) -> Iterator[ArchiveFolder]:
        """Folders in creation order, parents before children."""
        stack = [self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.folders.values()))

    def iter_files(self) -> Iterator[ArchiveFile]:
        """Files in registration order."""
        yield from self._files

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self._files]

    def __len__(self) -> int:
        return len(self._files)


def create_root(project_name: str) -> ArchiveTree:
    """Create an empty tree whose root is the sanitized project name."""
    return ArchiveTree(root_folder_name(project_name))


def decode_payload(payload: str) -> bytes | None:
    """Decode the base64 body of a ``data:<mime>;base64,<body>`` URL.

    Characters outside the base64 alphabet, such as line breaks in a wrapped
    body, are discarded.  Returns ``None`` when the payload has no body or the
    body does not decode to any bytes.
    """
    _, sep, body = payload.partition(",")
    if not sep or not body:
        return None
    try:
        data = base64.b64decode(body)
    except binascii.Error:
        return None
    return data or None


def category_folder(
    tree: ArchiveTree,
    category: ItemCategory,
    organization: OrganizationMode,
) -> ArchiveFolder:
    """Folder that receives *category* files under *organization*.

    ``by-beat`` has no distinct tree for these categories and uses the
    ``by-type`` layout.
    """
    if organization is OrganizationMode.FLAT:
        return tree.root
    return tree.root.folder(category.value)


def assemble_archive(
    tree: ArchiveTree,
    items: Iterable[ExportableItem],
    config: ExportConfig,
    *,
    script_data: ScriptData | None = None,
    on_file: Callable[[str], None] | None = None,
) -> ArchiveTree:
    """Register every decodable item in *tree* and add ``script.json``.

    Parameters
    ----------
    tree:
        Tree returned by :func:`create_root`.
    items:
        Items in archive order, from the enumerator.
    config:
        Frozen export configuration.
    script_data:
        Written as pretty-printed ``script.json`` at the root when present and
        ``config.include_script`` is set.
    on_file:
        Called with each registered filename, once per image file.

    Returns
    -------
    ArchiveTree
        The same *tree*, for chaining convenience.
    """
    if config.organization is OrganizationMode.BY_BEAT:
        logger.info("by-beat organization uses the by-type folder layout")

    skipped = 0
    for item in items:
        data = decode_payload(item.payload)
        if data is None:
            logger.debug(
                "Skipping %s item %s: payload is not decodable",
                item.category.value, item.source_id,
            )
            skipped += 1
            continue
        folder = category_folder(tree, item.category, config.organization)
        entry = tree.add_file(folder, filename_for(item, config.image_format), data)
        if on_file is not None:
            on_file(entry.path.rsplit("/", 1)[-1])

    if config.include_script and script_data is not None:
        tree.add_file(tree.root, SCRIPT_FILENAME, script_data.to_json().encode("utf-8"))

    logger.info("Assembled %d archive files (%d skipped)", len(tree), skipped)
    return tree
