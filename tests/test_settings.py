import json

import pytest

from iMedia.errors import SettingsLoadError, SettingsValidationError
from iMedia.infrastructure.stores.memory_store import InMemoryAssetStore
from iMedia.library import MediaLibrary
from iMedia.settings import DEFAULT_SETTINGS, SettingsManager


def test_load_writes_defaults(tmp_path):
    path = tmp_path / "settings.json"
    manager = SettingsManager(path)

    manager.load()

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_SETTINGS
    assert manager.get("store.backend") == "sqlite"
    assert manager.get("store.missing", "fallback") == "fallback"


def test_partial_sections_merge_with_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"logging": {"level": "debug"}, "store": {"pool_size": 3}}), encoding="utf-8")
    manager = SettingsManager(path)

    manager.load()

    assert manager.get("logging.level") == "DEBUG"
    assert manager.get("store.pool_size") == 3
    assert manager.get("store.backend") == "sqlite"


def test_invalid_value_leaves_settings_untouched(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    manager.load()

    with pytest.raises(SettingsValidationError):
        manager.set("store.backend", "postgres")

    assert manager.get("store.backend") == "sqlite"
    stored = json.loads((tmp_path / "settings.json").read_text(encoding="utf-8"))
    assert stored["store"]["backend"] == "sqlite"


def test_listeners_hear_successful_updates(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    manager.load()
    seen = []
    manager.subscribe(lambda key, value: seen.append((key, value)))

    manager.set("representation.content_mode", "aspect_fill")
    with pytest.raises(SettingsValidationError):
        manager.set("representation.content_mode", "stretch")

    assert seen == [("representation.content_mode", "aspect_fill")]
    reloaded = SettingsManager(tmp_path / "settings.json")
    reloaded.load()
    assert reloaded.get("representation.content_mode") == "aspect_fill"


def test_broken_files_are_reported(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        SettingsManager(path).load()

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        SettingsManager(path).load()

    path.write_text(json.dumps({"schema": "something-else"}), encoding="utf-8")
    with pytest.raises(SettingsValidationError):
        SettingsManager(path).load()


def test_library_from_memory_settings(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"store": {"backend": "memory"}}), encoding="utf-8")
    manager = SettingsManager(path)
    manager.load()

    library = MediaLibrary.from_settings(manager)
    try:
        assert isinstance(library.store, InMemoryAssetStore)
        assert list(library.photos.all) == []
    finally:
        library.shutdown()


def test_library_from_sqlite_settings_defaults_next_to_settings(tmp_path):
    manager = SettingsManager(tmp_path / "settings.json")
    manager.load()

    library = MediaLibrary.from_settings(manager)
    try:
        assert len(library.videos.all) == 0
    finally:
        library.shutdown()

    assert (tmp_path / "media_library.db").exists()
