"""Deterministic archive naming: slugs, zero-padded counters and filenames."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from boardforge.models.enums import ItemCategory, ItemKind

if TYPE_CHECKING:
    from collections.abc import Collection

    from boardforge.models import ExportableItem, ImageFormat

_UNSAFE = re.compile(r"[^a-zA-Z0-9]")

SLUG_MAX_LENGTH = 30
# Beat summaries and prompts are clipped before sanitizing.
SUMMARY_SLUG_SOURCE_LENGTH = 20

PROJECT_FALLBACK = "project"
CHARACTER_FALLBACK = "character"
LOCATION_FALLBACK = "location"
ASSET_FALLBACK = "asset"
GENERATION_FALLBACK = "generation"

_COUNTER_WIDTH: dict[ItemCategory, int] = {
    ItemCategory.PANELS: 3,
    ItemCategory.CHARACTERS: 2,
    ItemCategory.LOCATIONS: 2,
    ItemCategory.LIBRARY: 3,
    ItemCategory.GENERATIONS: 3,
}

# Filename templates after the number (and optional shot suffix).
_KIND_TEMPLATE: dict[ItemKind, str] = {
    ItemKind.SHOT: "_{slug}",
    ItemKind.GRID: "_{slug}_grid",
    ItemKind.LINKED: "_{slug}_linked",
    ItemKind.SHEET: "_{slug}_sheet",
    ItemKind.EXPRESSIONS: "_{slug}_expressions",
    ItemKind.PLATE: "_{slug}_plate",
    ItemKind.ASSET: "_{slug}",
    ItemKind.GENERATION: "_{slug}",
}


def sanitize(text: str, default: str = "") -> str:
    """Reduce *text* to a lowercase ASCII slug of at most 30 characters.

    Every character that is not an ASCII letter or digit becomes ``_``;
    underscores left dangling at either end are trimmed.  Returns *default*
    when nothing usable remains.
    """
    slug = _UNSAFE.sub("_", text).lower()[:SLUG_MAX_LENGTH].strip("_")
    return slug or default


def summary_slug(text: str, default: str) -> str:
    """Slug for free-form text such as a beat summary or a prompt."""
    return sanitize(text[:SUMMARY_SLUG_SOURCE_LENGTH], default)


def beat_fallback(counter: int) -> str:
    return f"beat_{counter}"


def linked_fallback(counter: int) -> str:
    return f"linked_{counter}"


def pad(number: int, category: ItemCategory) -> str:
    """Zero-pad a sequence number to the category's width."""
    return str(number).zfill(_COUNTER_WIDTH[category])


def extension(image_format: ImageFormat) -> str:
    """File extension for the selected format.

    The payload bytes are written untouched, so a PNG payload exported with
    ``jpg`` selected keeps PNG bytes under a ``.jpg`` name.
    """
    return image_format.value


def filename_for(item: ExportableItem, image_format: ImageFormat) -> str:
    """Archive filename for *item*, e.g. ``001.2_rainy_street.png``."""
    number = pad(item.sequence, item.category)
    if item.shot_index is not None:
        number = f"{number}.{item.shot_index}"
    stem = number + _KIND_TEMPLATE[item.kind].format(slug=item.base_name)
    return f"{stem}.{extension(image_format)}"


def unique_path(path: str, taken: Collection[str]) -> str:
    """Return *path*, or ``<stem>_<n>.<ext>`` with the lowest free ``n >= 2``."""
    if path not in taken:
        return path
    stem, dot, ext = path.rpartition(".")
    if not dot:
        stem, ext = path, ""
    n = 2
    while True:
        candidate = f"{stem}_{n}.{ext}" if dot else f"{stem}_{n}"
        if candidate not in taken:
            return candidate
        n += 1


def root_folder_name(project_name: str) -> str:
    return sanitize(project_name, PROJECT_FALLBACK)


def archive_filename(project_name: str) -> str:
    """Name of the delivered archive, e.g. ``my_ad_archive.zip``."""
    return f"{root_folder_name(project_name)}_archive.zip"
