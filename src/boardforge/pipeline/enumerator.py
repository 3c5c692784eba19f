"""Count and enumerate exportable project assets in a fixed, reproducible order.

Production runs as an ordered pipeline of pure category handlers.  Each handler
receives the project, the frozen export config and the running
:class:`Counters`, and returns its items together with the advanced counters::

    panels -> linked panels -> characters -> locations -> library -> generations

Linked panels continue the panel counter, so in a flat archive they can never
reuse a number already taken by the main panel pass.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, TypeAlias

from boardforge.models.enums import ItemCategory, ItemKind
from boardforge.models.export import ExportableItem
from boardforge.pipeline.naming import (
    ASSET_FALLBACK,
    CHARACTER_FALLBACK,
    GENERATION_FALLBACK,
    LOCATION_FALLBACK,
    beat_fallback,
    linked_fallback,
    sanitize,
    summary_slug,
)

if TYPE_CHECKING:
    from boardforge.models import ExportConfig, GeneratedImage, Project

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Counters:
    """Next sequence number per counter namespace.

    Values only ever move forward during one build.
    """

    panel: int = 1
    character: int = 1
    location: int = 1
    library: int = 1
    generation: int = 1


HandlerResult: TypeAlias = tuple[list[ExportableItem], Counters]
CategoryHandler: TypeAlias = Callable[["Project", "ExportConfig", Counters], HandlerResult]


# ---------------------------------------------------------------------------
# Counting pass
# ---------------------------------------------------------------------------


def count_exportable(config: ExportConfig, project: Project) -> int:
    """Number of image files the build is expected to produce.

    ``script.json`` is not counted.  Library assets are counted even when
    their payload later turns out to be undecodable.
    """
    total = 0
    script = project.script_data

    if config.include_panels and script is not None:
        for beat in script.beats:
            total += len(beat.generated_image_ids)
            if beat.sequence_grid:
                total += 1
        total += sum(1 for img in project.global_history if img.linked_beat_id)

    if config.include_characters and script is not None:
        for char in script.characters:
            if char.character_sheet:
                total += 1
            if char.expression_bank and char.expression_bank.grid:
                total += 1

    if config.include_locations and script is not None:
        total += sum(1 for loc in script.locations if loc.anchor_image)

    if config.include_library:
        total += len(project.library_assets)

    if config.include_generations:
        total += sum(1 for img in project.global_history if not img.linked_beat_id)

    return total


def can_export(config: ExportConfig, project: Project) -> bool:
    """Whether a build would produce at least one counted file."""
    return count_exportable(config, project) > 0


# ---------------------------------------------------------------------------
# Category handlers
# ---------------------------------------------------------------------------


def _history_index(project: Project) -> dict[str, GeneratedImage]:
    index: dict[str, GeneratedImage] = {}
    for img in project.global_history:
        index.setdefault(img.id, img)
    return index


def _panel_items(project: Project, config: ExportConfig, counters: Counters) -> HandlerResult:
    script = project.script_data
    if not config.include_panels or script is None:
        return [], counters

    history = _history_index(project)
    items: list[ExportableItem] = []
    panel = counters.panel

    for beat in script.beats:
        slug = summary_slug(beat.visual_summary, beat_fallback(panel))
        suffixed = len(beat.generated_image_ids) > 1

        for shot_idx, image_id in enumerate(beat.generated_image_ids, start=1):
            img = history.get(image_id)
            if img is None:
                logger.debug("Beat %s references unknown image %s", beat.id, image_id)
                continue
            items.append(ExportableItem(
                category=ItemCategory.PANELS,
                kind=ItemKind.SHOT,
                source_id=img.id,
                payload=img.url,
                base_name=slug,
                sequence=panel,
                shot_index=shot_idx if suffixed else None,
            ))

        if beat.sequence_grid:
            items.append(ExportableItem(
                category=ItemCategory.PANELS,
                kind=ItemKind.GRID,
                source_id=beat.id,
                payload=beat.sequence_grid,
                base_name=slug,
                sequence=panel,
            ))

        # Beats without images still consume a number; gaps are kept.
        panel += 1

    return items, replace(counters, panel=panel)


def _linked_panel_items(
    project: Project, config: ExportConfig, counters: Counters,
) -> HandlerResult:
    script = project.script_data
    if not config.include_panels or script is None:
        return [], counters

    groups: dict[str, list[GeneratedImage]] = {}
    for img in project.global_history:
        if img.linked_beat_id:
            groups.setdefault(img.linked_beat_id, []).append(img)

    items: list[ExportableItem] = []
    panel = counters.panel

    for beat_id, images in groups.items():
        beat = script.find_beat(beat_id)
        summary = beat.visual_summary if beat else ""
        slug = summary_slug(summary, linked_fallback(panel))
        suffixed = len(images) > 1

        for frame_idx, img in enumerate(images, start=1):
            items.append(ExportableItem(
                category=ItemCategory.PANELS,
                kind=ItemKind.LINKED,
                source_id=img.id,
                payload=img.url,
                base_name=slug,
                sequence=panel,
                shot_index=frame_idx if suffixed else None,
            ))
        panel += 1

    return items, replace(counters, panel=panel)


def _character_items(
    project: Project, config: ExportConfig, counters: Counters,
) -> HandlerResult:
    script = project.script_data
    if not config.include_characters or script is None:
        return [], counters

    items: list[ExportableItem] = []
    number = counters.character
    for char in script.characters:
        slug = sanitize(char.name, CHARACTER_FALLBACK)
        if char.character_sheet:
            items.append(ExportableItem(
                category=ItemCategory.CHARACTERS,
                kind=ItemKind.SHEET,
                source_id=char.id,
                payload=char.character_sheet,
                base_name=slug,
                sequence=number,
            ))
        if char.expression_bank and char.expression_bank.grid:
            items.append(ExportableItem(
                category=ItemCategory.CHARACTERS,
                kind=ItemKind.EXPRESSIONS,
                source_id=char.id,
                payload=char.expression_bank.grid,
                base_name=slug,
                sequence=number,
            ))
        number += 1

    return items, replace(counters, character=number)


def _location_items(
    project: Project, config: ExportConfig, counters: Counters,
) -> HandlerResult:
    script = project.script_data
    if not config.include_locations or script is None:
        return [], counters

    items: list[ExportableItem] = []
    number = counters.location
    for loc in script.locations:
        if loc.anchor_image:
            items.append(ExportableItem(
                category=ItemCategory.LOCATIONS,
                kind=ItemKind.PLATE,
                source_id=loc.id,
                payload=loc.anchor_image,
                base_name=sanitize(loc.name, LOCATION_FALLBACK),
                sequence=number,
            ))
        number += 1

    return items, replace(counters, location=number)


def _library_items(
    project: Project, config: ExportConfig, counters: Counters,
) -> HandlerResult:
    if not config.include_library:
        return [], counters

    items: list[ExportableItem] = []
    number = counters.library
    for asset in project.library_assets:
        items.append(ExportableItem(
            category=ItemCategory.LIBRARY,
            kind=ItemKind.ASSET,
            source_id=asset.id,
            payload=asset.data,
            base_name=f"{asset.type.value}_{sanitize(asset.name, ASSET_FALLBACK)}",
            sequence=number,
        ))
        number += 1

    return items, replace(counters, library=number)


def _generation_items(
    project: Project, config: ExportConfig, counters: Counters,
) -> HandlerResult:
    if not config.include_generations:
        return [], counters

    items: list[ExportableItem] = []
    number = counters.generation
    for img in project.global_history:
        if img.linked_beat_id:
            continue
        items.append(ExportableItem(
            category=ItemCategory.GENERATIONS,
            kind=ItemKind.GENERATION,
            source_id=img.id,
            payload=img.url,
            base_name=summary_slug(img.prompt, GENERATION_FALLBACK),
            sequence=number,
        ))
        number += 1

    return items, replace(counters, generation=number)


HANDLERS: tuple[CategoryHandler, ...] = (
    _panel_items,
    _linked_panel_items,
    _character_items,
    _location_items,
    _library_items,
    _generation_items,
)


def produce_ordered_items(config: ExportConfig, project: Project) -> list[ExportableItem]:
    """Enumerate every exportable item in archive order.

    Recomputed on every call; the same input always yields the same list.
    """
    counters = Counters()
    items: list[ExportableItem] = []
    for handler in HANDLERS:
        produced, counters = handler(project, config, counters)
        items.extend(produced)
    logger.info("Enumerated %d exportable items", len(items))
    return items
