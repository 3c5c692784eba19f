"""Export configuration and exportable item models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from boardforge.models.enums import (
    ImageFormat,
    ItemCategory,
    ItemKind,
    OrganizationMode,
    QualityMode,
)


class ExportConfig(BaseModel):
    """User's export choices. Frozen: a build reads one immutable snapshot."""

    model_config = ConfigDict(frozen=True)

    organization: OrganizationMode = OrganizationMode.BY_TYPE
    # Format and quality are recorded only; payloads are never re-encoded.
    image_format: ImageFormat = ImageFormat.PNG
    quality: QualityMode = QualityMode.ORIGINAL
    include_panels: bool = True
    include_characters: bool = True
    include_locations: bool = True
    include_library: bool = True
    include_generations: bool = True
    include_script: bool = True


@dataclass(frozen=True)
class ExportableItem:
    """One file-to-be, as produced by the enumerator."""

    category: ItemCategory
    kind: ItemKind
    source_id: str
    payload: str
    base_name: str
    sequence: int
    shot_index: int | None = None
