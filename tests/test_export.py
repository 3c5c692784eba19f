"""Tests for the end-to-end export build, delivery and session."""

import io
import zipfile
from pathlib import Path

import pytest

from boardforge.config import AppConfig
from boardforge.models import (
    Beat,
    ExportConfig,
    ExportPhase,
    GeneratedImage,
    LibraryAsset,
    NotificationLevel,
    OrganizationMode,
    Project,
    ScriptData,
)
from boardforge.pipeline.delivery import Delivery, DirectoryDelivery
from boardforge.pipeline.export import FAILURE_MESSAGE, NothingToExportError, export_archive
from boardforge.pipeline.progress import ExportProgress, ProgressState
from boardforge.pipeline.session import ExportInProgressError, ExportSession


class RecordingDelivery:
    """Keeps delivered archives in memory."""

    def __init__(self) -> None:
        self.delivered: list[tuple[str, bytes]] = []

    async def deliver(self, filename: str, data: bytes) -> Path:
        self.delivered.append((filename, data))
        return Path("/virtual") / filename


class Notifications:
    def __init__(self) -> None:
        self.messages: list[tuple[str, NotificationLevel]] = []

    def __call__(self, message: str, level: NotificationLevel) -> None:
        self.messages.append((message, level))


@pytest.fixture
def notifications() -> Notifications:
    return Notifications()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.mark.asyncio
async def test_export_writes_archive(sample_project: Project, tmp_path: Path, notifications,
                                     app_config):
    delivery = DirectoryDelivery(tmp_path / "out")
    result = await export_archive(
        sample_project, ExportConfig(), delivery, notify=notifications, app_config=app_config,
    )

    assert result is not None
    assert result.filename == "my_ad_archive.zip"
    assert result.location == tmp_path / "out" / "my_ad_archive.zip"
    assert result.total == 20
    assert notifications.messages == [
        ("Exported 20 files in ZIP archive", NotificationLevel.SUCCESS),
    ]
    assert list((tmp_path / "out").iterdir()) == [result.location]

    with zipfile.ZipFile(result.location) as zf:
        files = [n for n in zf.namelist() if not n.endswith("/")]
        assert files == result.paths
        assert len(files) == 21
        assert "my_ad/script.json" in files
        assert zf.read("my_ad/panels/001_hero_enters_the_dine.png").startswith(b"\x89PNG")


@pytest.mark.asyncio
async def test_phases_in_order(sample_project: Project, app_config):
    progress = ExportProgress()
    seen: list[ProgressState] = []
    progress.subscribe(seen.append)

    await export_archive(
        sample_project, ExportConfig(), RecordingDelivery(),
        progress=progress, app_config=app_config,
    )

    phases = [s.phase for s in seen]
    collapsed = [p for i, p in enumerate(phases) if i == 0 or phases[i - 1] is not p]
    assert collapsed == [
        ExportPhase.PREPARING,
        ExportPhase.PROCESSING,
        ExportPhase.COMPRESSING,
        ExportPhase.COMPLETE,
    ]
    processing = [s.current for s in seen if s.phase is ExportPhase.PROCESSING]
    assert processing == list(range(21))
    assert all(s.total == 20 for s in seen[1:])
    assert seen[-1].current == 20
    compress = [s.compress_percent for s in seen if s.phase is ExportPhase.COMPRESSING]
    assert compress == sorted(compress)
    assert compress[-1] == 100


@pytest.mark.asyncio
async def test_numbering_gap_example(png_url: str, app_config):
    project = Project(
        name="My Ad!!",
        global_history=[GeneratedImage(id="a", url=png_url, prompt="shot")],
        script_data=ScriptData(beats=[
            Beat(id="A", visual_summary="Opening", generated_image_ids=["a"],
                 sequence_grid=png_url),
            Beat(id="B", visual_summary="Quiet"),
            Beat(id="C", visual_summary="Closing", sequence_grid=png_url),
        ]),
    )
    config = ExportConfig(include_generations=False, include_script=False)
    result = await export_archive(project, config, RecordingDelivery(), app_config=app_config)
    assert result is not None
    assert result.paths == [
        "my_ad/panels/001_opening.png",
        "my_ad/panels/001_opening_grid.png",
        "my_ad/panels/003_closing_grid.png",
    ]


@pytest.mark.asyncio
async def test_builds_are_deterministic(sample_project: Project, app_config):
    config = ExportConfig(organization=OrganizationMode.FLAT)
    first = await export_archive(sample_project, config, RecordingDelivery(),
                                 app_config=app_config)
    second = await export_archive(sample_project, config, RecordingDelivery(),
                                  app_config=app_config)
    assert first is not None
    assert second is not None
    assert first.paths == second.paths


@pytest.mark.asyncio
async def test_compression_failure_midway(png_url: str, notifications, app_config,
                                          monkeypatch: pytest.MonkeyPatch):
    project = Project(
        name="ten",
        library_assets=[
            LibraryAsset(id=f"a{i}", name=f"asset {i}", data=png_url) for i in range(10)
        ],
    )
    original = zipfile.ZipFile.writestr
    written: list[str] = []

    def _fail_after_five(self, name, data, *args, **kwargs):
        if not str(name).endswith("/"):
            if len(written) == 5:
                raise OSError("simulated write failure")
            written.append(str(name))
        return original(self, name, data, *args, **kwargs)

    monkeypatch.setattr(zipfile.ZipFile, "writestr", _fail_after_five)

    delivery = RecordingDelivery()
    progress = ExportProgress()
    result = await export_archive(
        project, ExportConfig(), delivery,
        notify=notifications, progress=progress, app_config=app_config,
    )

    assert result is None
    assert len(written) == 5
    assert progress.state.phase is ExportPhase.ERROR
    assert delivery.delivered == []
    assert notifications.messages == [(FAILURE_MESSAGE, NotificationLevel.ERROR)]


@pytest.mark.asyncio
async def test_delivery_failure_is_reported(sample_project: Project, notifications, app_config):
    class BrokenDelivery:
        async def deliver(self, filename: str, data: bytes) -> Path:
            raise PermissionError("read-only")

    progress = ExportProgress()
    result = await export_archive(
        sample_project, ExportConfig(), BrokenDelivery(),
        notify=notifications, progress=progress, app_config=app_config,
    )
    assert result is None
    assert progress.state.phase is ExportPhase.ERROR
    assert notifications.messages == [(FAILURE_MESSAGE, NotificationLevel.ERROR)]


@pytest.mark.asyncio
async def test_nothing_to_export(sample_project: Project, app_config):
    config = ExportConfig(
        include_panels=False,
        include_characters=False,
        include_locations=False,
        include_library=False,
        include_generations=False,
    )
    delivery = RecordingDelivery()
    progress = ExportProgress()
    with pytest.raises(NothingToExportError):
        await export_archive(sample_project, config, delivery, progress=progress,
                             app_config=app_config)
    assert delivery.delivered == []
    assert progress.state.phase is ExportPhase.PREPARING


@pytest.mark.asyncio
async def test_skipped_payload_does_not_shrink_total(png_url: str, notifications, app_config):
    project = Project(
        name="soft",
        library_assets=[
            LibraryAsset(id="ok", name="ok", data=png_url),
            LibraryAsset(id="bad", name="bad", data="data:image/png;base64,%%%"),
        ],
    )
    delivery = RecordingDelivery()
    result = await export_archive(project, ExportConfig(), delivery, notify=notifications,
                                  app_config=app_config)
    assert result is not None
    assert result.total == 2
    assert result.paths == ["soft/library/001_General_ok.png"]
    (_, data), = delivery.delivered
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert "soft/library/002_General_bad.png" not in zf.namelist()


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


def test_delivery_protocol():
    assert isinstance(DirectoryDelivery(Path("out")), Delivery)
    assert isinstance(RecordingDelivery(), Delivery)


@pytest.mark.asyncio
async def test_directory_delivery_overwrites_atomically(tmp_path: Path):
    delivery = DirectoryDelivery(tmp_path / "nested" / "out")
    first = await delivery.deliver("p_archive.zip", b"one")
    second = await delivery.deliver("p_archive.zip", b"two")
    assert first == second
    assert second.read_bytes() == b"two"
    assert [p.name for p in second.parent.iterdir()] == ["p_archive.zip"]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def test_session_update_config(sample_project: Project):
    session = ExportSession(sample_project, RecordingDelivery())
    before = session.config
    after = session.update_config(organization="flat", include_library=False)
    assert before.organization is OrganizationMode.BY_TYPE
    assert after.organization is OrganizationMode.FLAT
    assert session.config is after
    assert session.total == 18


@pytest.mark.asyncio
async def test_session_blocks_edits_and_second_build(sample_project: Project, app_config):
    session = ExportSession(sample_project, RecordingDelivery(), app_config=app_config)
    errors: list[Exception] = []

    class ProbingDelivery:
        async def deliver(self, filename: str, data: bytes) -> Path:
            assert session.busy
            assert not session.can_export
            for attempt in (lambda: session.update_config(include_script=False),
                            session.reset):
                try:
                    attempt()
                except ExportInProgressError as exc:
                    errors.append(exc)
            with pytest.raises(ExportInProgressError):
                await session.run()
            return Path("/virtual") / filename

    session.delivery = ProbingDelivery()
    result = await session.run()
    assert result is not None
    assert len(errors) == 2
    assert not session.busy
    assert session.progress is not None
    assert session.progress.state.phase is ExportPhase.COMPLETE
    session.reset()
    assert session.progress is None


@pytest.mark.asyncio
async def test_session_retry_after_failure(sample_project: Project, notifications, app_config):
    class FlakyDelivery:
        calls = 0

        async def deliver(self, filename: str, data: bytes) -> Path:
            FlakyDelivery.calls += 1
            if FlakyDelivery.calls == 1:
                raise OSError("first try fails")
            return Path("/virtual") / filename

    session = ExportSession(
        sample_project, FlakyDelivery(), notify=notifications, app_config=app_config,
    )
    assert await session.run() is None
    assert session.progress.state.phase is ExportPhase.ERROR
    result = await session.run()
    assert result is not None
    assert session.progress.state.phase is ExportPhase.COMPLETE
    assert [level for _, level in notifications.messages] == [
        NotificationLevel.ERROR, NotificationLevel.SUCCESS,
    ]
