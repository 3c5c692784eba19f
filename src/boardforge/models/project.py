"""Project model - the in-memory collections an export draws from."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from boardforge.models.enums import AssetType


class ProjectLoadError(ValueError):
    """Raised when a project file cannot be loaded."""


class _ProjectModel(BaseModel):
    """Accepts the storyboard app's camelCase keys as well as snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ScriptModel(_ProjectModel):
    """Script entities keep unknown keys so script.json round-trips."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class GeneratedImage(_ProjectModel):
    """An image in the project's global generation history."""

    id: str
    url: str
    prompt: str = ""
    linked_beat_id: str | None = None


class LibraryAsset(_ProjectModel):
    """A saved reference asset from the project library."""

    id: str
    name: str = ""
    data: str
    type: AssetType = AssetType.GENERAL


class Beat(_ScriptModel):
    id: str
    visual_summary: str = ""
    generated_image_ids: list[str] = Field(default_factory=list)
    sequence_grid: str | None = None


class ExpressionBank(_ScriptModel):
    grid: str | None = None


class CharacterProfile(_ScriptModel):
    id: str
    name: str = ""
    description: str = ""
    character_sheet: str | None = None
    expression_bank: ExpressionBank | None = None


class LocationProfile(_ScriptModel):
    id: str
    name: str = ""
    description: str = ""
    anchor_image: str | None = None


class ScriptData(_ScriptModel):
    """Script breakdown: beats plus the world bible entries they reference."""

    content: str = ""
    beats: list[Beat] = Field(default_factory=list)
    characters: list[CharacterProfile] = Field(default_factory=list)
    locations: list[LocationProfile] = Field(default_factory=list)

    def find_beat(self, beat_id: str) -> Beat | None:
        return next((b for b in self.beats if b.id == beat_id), None)

    def to_json(self) -> str:
        """Pretty-printed JSON in the app's own key style."""
        return self.model_dump_json(indent=2, by_alias=True, exclude_none=True)


class Project(_ProjectModel):
    """A storyboard project with its generation history, library and script."""

    name: str
    global_history: list[GeneratedImage] = Field(default_factory=list)
    library_assets: list[LibraryAsset] = Field(default_factory=list)
    script_data: ScriptData | None = None

    def save(self, path: Path) -> Path:
        """Save project to JSON file."""
        save_path = path if path.suffix == ".json" else path / "project.json"
        save_path.parent.mkdir(parents=True, exist_ok=True)
        save_path.write_text(self.model_dump_json(indent=2, by_alias=True))
        return save_path

    @classmethod
    def load(cls, path: Path) -> Project:
        """Load project from JSON file."""
        if path.is_dir():
            path = path / "project.json"
        try:
            text = path.read_text()
        except FileNotFoundError:
            msg = f"project file not found: {path}"
            raise ProjectLoadError(msg) from None
        except PermissionError:
            msg = f"permission denied reading project file: {path}"
            raise ProjectLoadError(msg) from None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"project file contains invalid JSON: {exc}"
            raise ProjectLoadError(msg) from None
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            msg = f"project file has invalid structure: {exc}"
            raise ProjectLoadError(msg) from None
