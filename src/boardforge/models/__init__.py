"""BoardForge data models - pure Pydantic, no I/O."""

from boardforge.models.enums import (
    AssetType,
    ExportPhase,
    ImageFormat,
    ItemCategory,
    ItemKind,
    NotificationLevel,
    OrganizationMode,
    QualityMode,
)
from boardforge.models.export import ExportableItem, ExportConfig
from boardforge.models.project import (
    Beat,
    CharacterProfile,
    ExpressionBank,
    GeneratedImage,
    LibraryAsset,
    LocationProfile,
    Project,
    ProjectLoadError,
    ScriptData,
)

__all__ = [
    "AssetType",
    "Beat",
    "CharacterProfile",
    "ExportConfig",
    "ExportPhase",
    "ExportableItem",
    "ExpressionBank",
    "GeneratedImage",
    "ImageFormat",
    "ItemCategory",
    "ItemKind",
    "LibraryAsset",
    "LocationProfile",
    "NotificationLevel",
    "OrganizationMode",
    "Project",
    "ProjectLoadError",
    "QualityMode",
    "ScriptData",
]
