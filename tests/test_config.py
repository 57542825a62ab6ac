from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from webforge.config import SettingsManager, app_data_dir, load_remote_config, setup_logging


def test_settings_defaults_are_written(tmp_path) -> None:
    path = tmp_path / "settings.json"
    settings = SettingsManager(path)

    assert settings.get("autosave_delay_ms") == "1000"
    assert settings.get_int("autosave_delay_ms", 0) == 1000
    assert json.loads(path.read_text(encoding="utf-8"))["site_domain"] == "webforge.app"

    settings.set("autosave_delay_ms", "soon")
    assert SettingsManager(path).get_int("autosave_delay_ms", 1000) == 1000


def test_unreadable_settings_fall_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{", encoding="utf-8")
    assert SettingsManager(path).get("log_level") == "INFO"


def test_environment_overrides_remote_settings(tmp_path, monkeypatch) -> None:
    settings = SettingsManager(tmp_path / "settings.json")
    settings.set("supabase_url", "https://from-settings.supabase.co")
    monkeypatch.delenv("WEBFORGE_SUPABASE_URL", raising=False)
    monkeypatch.delenv("WEBFORGE_SUPABASE_ANON_KEY", raising=False)

    assert not load_remote_config(settings).configured

    monkeypatch.setenv("WEBFORGE_SUPABASE_URL", "https://from-env.supabase.co")
    monkeypatch.setenv("WEBFORGE_SUPABASE_ANON_KEY", "key")
    remote = load_remote_config(settings)
    assert remote.url == "https://from-env.supabase.co"
    assert remote.configured


def test_app_data_dir_honours_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("WEBFORGE_HOME", str(tmp_path / "home"))
    assert app_data_dir() == tmp_path / "home"
    assert app_data_dir().is_dir()


def test_setup_logging_adds_handlers_once(tmp_path) -> None:
    settings = SettingsManager(tmp_path / "settings.json")
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        setup_logging(settings, log_dir=tmp_path / "logs")
        setup_logging(settings, log_dir=tmp_path / "logs")
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 2
        assert (tmp_path / "logs" / "webforge.log").exists()
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()
