"""Shared fixtures for BoardForge tests."""

import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from boardforge.models import (
    AssetType,
    Beat,
    CharacterProfile,
    ExportConfig,
    ExpressionBank,
    GeneratedImage,
    LibraryAsset,
    LocationProfile,
    Project,
    ScriptData,
)


def make_data_url(fmt: str = "PNG", color: tuple[int, int, int] = (120, 80, 200)) -> str:
    """A tiny real image encoded as a base64 data URL."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, fmt)
    body = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/{fmt.lower()};base64,{body}"


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ~/.boardforge out of the real home directory."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def png_url() -> str:
    return make_data_url("PNG")


@pytest.fixture
def jpeg_url() -> str:
    return make_data_url("JPEG")


@pytest.fixture
def sample_project(png_url: str) -> Project:
    """Project touching every category.

    Expected counts with everything enabled: 8 panels (3 of them linked),
    3 character files, 1 location plate, 2 library assets, 6 generations.
    """
    history = [
        GeneratedImage(id="gen-1", url=png_url, prompt="Wide shot of the city at dusk"),
        GeneratedImage(id="gen-2", url=png_url, prompt="Moody portrait"),
        GeneratedImage(id="shot-a", url=png_url, prompt="Hero at the counter"),
        GeneratedImage(id="shot-b1", url=png_url, prompt="Bottle close-up"),
        GeneratedImage(id="shot-b2", url=png_url, prompt="Label detail"),
        GeneratedImage(id="shot-b3", url=png_url, prompt="Pour"),
        GeneratedImage(id="link-1", url=png_url, prompt="start frame", linked_beat_id="beat-1"),
        GeneratedImage(id="link-2", url=png_url, prompt="end frame", linked_beat_id="beat-1"),
        GeneratedImage(id="link-3", url=png_url, prompt="orphan", linked_beat_id="beat-x"),
    ]
    script = ScriptData(
        content="INT. DINER - NIGHT",
        beats=[
            Beat(
                id="beat-1",
                visual_summary="Hero enters the diner",
                generated_image_ids=["shot-a"],
                sequence_grid=png_url,
            ),
            Beat(id="beat-2", visual_summary="Empty street"),
            Beat(
                id="beat-3",
                visual_summary="Product reveal",
                generated_image_ids=["shot-b1", "shot-b2", "shot-b3"],
            ),
        ],
        characters=[
            CharacterProfile(
                id="char-1",
                name="Mara",
                character_sheet=png_url,
                expression_bank=ExpressionBank(grid=png_url),
            ),
            CharacterProfile(id="char-2", name="", character_sheet=png_url),
            CharacterProfile(id="char-3", name="Zed"),
        ],
        locations=[
            LocationProfile(id="loc-1", name="Neon Diner", anchor_image=png_url),
            LocationProfile(id="loc-2", name="Alley"),
        ],
    )
    return Project(
        name="My Ad!!",
        global_history=history,
        library_assets=[
            LibraryAsset(id="lib-1", name="Mara ref", data=png_url, type=AssetType.CHARACTER),
            LibraryAsset(id="lib-2", name="Logo", data=png_url, type=AssetType.PRODUCT),
        ],
        script_data=script,
    )


@pytest.fixture
def export_config() -> ExportConfig:
    return ExportConfig()
