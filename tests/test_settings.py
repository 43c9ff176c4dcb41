from __future__ import annotations

import json

from lnshot.settings import Settings, load_settings, save_settings


def test_defaults_when_file_missing(tmp_path) -> None:
    settings = load_settings(str(tmp_path / "settings.json"))
    assert settings == Settings()
    assert settings.pictures_directory_name == "Steam Screenshots"


def test_roundtrip(tmp_path) -> None:
    path = str(tmp_path / "nested" / "settings.json")
    assert save_settings(Settings(pictures_directory_name="Shots", debounce_seconds=5), path) is True
    loaded = load_settings(path)
    assert loaded.pictures_directory_name == "Shots"
    assert loaded.debounce_seconds == 5.0


def test_corrupt_file_falls_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert load_settings(str(path)) == Settings()


def test_unknown_keys_and_bad_values(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"language": "en", "debounce_seconds": "soon", "steam_path": "/opt/steam"}))
    settings = load_settings(str(path))
    assert settings.steam_path == "/opt/steam"
    assert settings.debounce_seconds == 2.0
