# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: test_source_catalog.py
# -----------------------------------------------------------------------------
import json

import pytest

from api.AppContainer import catalog_path
from config.Config import Config
from sources.SourceCatalog import SourceCatalog
from sources.TLDWSource import Exercise, VideoMetadata
from utility.errors import NotFoundError, StorageError, ValidationError


def _video(catalog, owner="U1", **kwargs):
    return catalog.create(
        owner,
        url="https://youtube.com/watch?v=abc",
        title="Leg day",
        original_content="Squats then lunges",
        extraction_type="video",
        summary="Lower body",
        key_points=["squat", "lunge"],
        source_metadata={
            "video_id": "abc",
            "duration_seconds": 600,
            "exercises": [{"name": "Squat", "timestamp": "01:10"}],
            "language": "en",
        },
        **kwargs,
    )


def test_memory_only_catalog_writes_nothing(tmp_path):
    catalog = SourceCatalog()
    src = _video(catalog)
    assert catalog.get("U1", src.id) is src
    assert list(tmp_path.iterdir()) == []


def test_sources_are_reloaded_from_disk(tmp_path):
    path = tmp_path / "catalog" / "sources.json"
    first = SourceCatalog(path)
    src = _video(first)

    reloaded = SourceCatalog(path).get("U1", src.id)
    assert reloaded == src
    assert isinstance(reloaded.source_metadata, VideoMetadata)
    assert reloaded.source_metadata.exercises == [Exercise(name="Squat", timestamp="01:10")]
    assert reloaded.source_metadata.extra == {"language": "en"}


def test_owner_scoping_survives_reload(tmp_path):
    path = tmp_path / "sources.json"
    src = _video(SourceCatalog(path), owner="U1")

    catalog = SourceCatalog(path)
    assert catalog.exists("U1", src.id)
    assert not catalog.exists("U2", src.id)
    with pytest.raises(NotFoundError):
        catalog.get("U2", src.id)


def test_delete_is_persisted(tmp_path):
    path = tmp_path / "sources.json"
    catalog = SourceCatalog(path)
    keep = _video(catalog, source_id="keep")
    gone = _video(catalog, source_id="gone")

    assert catalog.delete("U1", gone.id) is True
    assert catalog.delete("U1", gone.id) is False

    reloaded = SourceCatalog(path)
    assert reloaded.get_many("U1", [keep.id, gone.id]) == {keep.id: keep}
    assert [row["id"] for row in json.loads(path.read_text(encoding="utf-8"))] == ["keep"]


def test_create_validates_before_writing(tmp_path):
    path = tmp_path / "sources.json"
    catalog = SourceCatalog(path)
    with pytest.raises(ValidationError):
        catalog.create("U1", url="u", title="t", original_content="  ", extraction_type="webpage")
    with pytest.raises(ValidationError):
        catalog.create("U1", url="u", title="t", original_content="x", extraction_type="podcast")
    assert not path.exists()


def test_corrupt_file_is_storage_error(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        SourceCatalog(path)


def test_failed_write_rolls_back(tmp_path, monkeypatch):
    catalog = SourceCatalog(tmp_path / "sources.json")

    def disk_full(*args, **kwargs):
        raise OSError("no space left on device")

    monkeypatch.setattr("sources.SourceCatalog.os.replace", disk_full)
    with pytest.raises(StorageError):
        _video(catalog, source_id="lost")
    assert not catalog.exists("U1", "lost")


def test_catalog_path_selection():
    assert catalog_path(Config(sources_path="/srv/tldw/sources.json")) == "/srv/tldw/sources.json"
    assert catalog_path(Config(chroma_mode="persistent", chroma_path="/srv/chroma"), "chroma") == (
        "/srv/chroma/tldw_sources.json"
    )
    assert catalog_path(Config(chroma_mode="ephemeral"), "chroma") is None
    assert catalog_path(Config(chroma_mode="persistent"), "memory") is None
