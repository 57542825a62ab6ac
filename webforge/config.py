"""Application settings, data locations and logging setup."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

APP_NAME = "WebForge"

DEFAULT_SETTINGS: Dict[str, str] = {
    "supabase_url": "",
    "supabase_anon_key": "",
    "autosave_delay_ms": "1000",
    "log_level": "INFO",
    "site_domain": "webforge.app",
    "site_url": "http://localhost:3000",
}


def app_data_dir() -> Path:
    """Return the platform-specific application data directory."""
    override = os.getenv("WEBFORGE_HOME")
    if override:
        target = Path(override)
    elif os.name == "nt":
        target = Path(os.getenv("LOCALAPPDATA", Path.home())) / APP_NAME
    else:
        target = Path.home() / ".local" / "share" / APP_NAME
    target.mkdir(parents=True, exist_ok=True)
    return target


def settings_path() -> Path:
    return app_data_dir() / "settings.json"


def session_path() -> Path:
    return app_data_dir() / "session.json"


def local_store_path() -> Path:
    return app_data_dir() / "projects.json"


def previews_dir() -> Path:
    target = app_data_dir() / "Previews"
    target.mkdir(parents=True, exist_ok=True)
    return target


class SettingsManager:
    """Very small settings helper storing JSON data."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path if path is not None else settings_path()
        self._settings: Dict[str, str] = {}
        self.load()

    def load(self) -> None:
        changed = False
        if self.path.exists():
            try:
                self._settings = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                self._settings = {}
        else:
            self._settings = {}

        for key, value in DEFAULT_SETTINGS.items():
            if key not in self._settings:
                self._settings[key] = value
                changed = True

        if changed:
            try:
                self.save()
            except OSError:
                pass

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._settings, indent=2), encoding="utf-8")

    def get(self, key: str, default: str = "") -> str:
        return self._settings.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self.get(key, str(default)))
        except (TypeError, ValueError):
            return default

    def set(self, key: str, value: str) -> None:
        self._settings[key] = value
        self.save()


@dataclass
class RemoteConfig:
    url: str
    anon_key: str

    @property
    def configured(self) -> bool:
        return bool(self.url and self.anon_key)


def load_remote_config(settings: SettingsManager) -> RemoteConfig:
    # Environment wins over the settings file.
    return RemoteConfig(
        url=os.getenv("WEBFORGE_SUPABASE_URL") or settings.get("supabase_url"),
        anon_key=os.getenv("WEBFORGE_SUPABASE_ANON_KEY") or settings.get("supabase_anon_key"),
    )


def setup_logging(settings: SettingsManager, log_dir: Optional[Path] = None) -> None:
    level = logging.getLevelName(settings.get("log_level", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not any(getattr(h, "_webforge", False) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._webforge = True  # type: ignore[attr-defined]
        root.addHandler(console)

        target = log_dir if log_dir is not None else app_data_dir() / "logs"
        try:
            target.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                target / "webforge.log", maxBytes=1_000_000, backupCount=3, encoding="utf-8"
            )
        except OSError:
            return
        file_handler.setFormatter(formatter)
        file_handler._webforge = True  # type: ignore[attr-defined]
        root.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
