"""Enumerations used throughout BoardForge."""

from enum import StrEnum


class OrganizationMode(StrEnum):
    BY_TYPE = "by-type"
    BY_BEAT = "by-beat"
    FLAT = "flat"


class ImageFormat(StrEnum):
    PNG = "png"
    JPG = "jpg"


class QualityMode(StrEnum):
    ORIGINAL = "original"
    OPTIMIZED = "optimized"


class ItemCategory(StrEnum):
    """Exportable asset categories; the value doubles as the by-type folder name."""

    PANELS = "panels"
    CHARACTERS = "characters"
    LOCATIONS = "locations"
    LIBRARY = "library"
    GENERATIONS = "generations"


class ItemKind(StrEnum):
    SHOT = "shot"
    GRID = "grid"
    LINKED = "linked"
    SHEET = "sheet"
    EXPRESSIONS = "expressions"
    PLATE = "plate"
    ASSET = "asset"
    GENERATION = "generation"


class AssetType(StrEnum):
    CHARACTER = "Character"
    LOCATION = "Location"
    PRODUCT = "Product"
    STYLE = "Style"
    GENERAL = "General"


class ExportPhase(StrEnum):
    PREPARING = "preparing"
    PROCESSING = "processing"
    COMPRESSING = "compressing"
    COMPLETE = "complete"
    ERROR = "error"


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
