# doug/settings.py
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import SettingsError
from .util.tz import normalize_tz_name

SETTINGS_FILE_NAME = "settings.json"


def default_folder() -> Path:
    """Settings folder: $DOUG_HOME, else ~/.doug."""
    env = (os.getenv("DOUG_HOME", "") or "").strip()
    if env:
        return Path(env).expanduser()
    return Path.home() / ".doug"


@dataclass
class Settings:
    """Settings stored on disk in `<folder>/settings.json`.

    data_location: folder holding periods.json (defaults to the settings folder)
    tz: bucketing timezone for days/weeks ("local", "UTC", IANA name, "+02:00")
    """

    data_location: Path
    tz: str = "local"

    @classmethod
    def defaults(cls, folder: Union[str, Path]) -> "Settings":
        return cls(data_location=Path(folder))

    @classmethod
    def load(cls, folder: Union[str, Path]) -> "Settings":
        """Load settings, creating the folder and a default file when missing."""
        folder = Path(folder)
        location = folder / SETTINGS_FILE_NAME
        try:
            folder.mkdir(parents=True, exist_ok=True)
            text = location.read_text(encoding="utf-8") if location.exists() else ""
        except UnicodeDecodeError as ex:
            raise SettingsError(f"There was a serialization issue in {location}: {ex}") from ex
        except OSError as ex:
            raise SettingsError(f"Couldn't open settings file {location}: {ex}") from ex

        if not text.strip():
            settings = cls.defaults(folder)
            settings.save(folder)
            return settings

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as ex:
            raise SettingsError(f"There was a serialization issue in {location}: {ex}") from ex
        return cls.from_dict(raw, folder=folder)

    @classmethod
    def from_dict(cls, raw: Any, *, folder: Path) -> "Settings":
        if not isinstance(raw, dict):
            raise SettingsError("settings must be a JSON object")
        loc = raw.get("data_location")
        if loc is not None and not isinstance(loc, str):
            raise SettingsError("settings.data_location must be a string path")
        tz = raw.get("tz")
        if tz is not None and not isinstance(tz, str):
            raise SettingsError("settings.tz must be a string")
        return cls(
            data_location=Path(loc).expanduser() if loc else folder,
            tz=normalize_tz_name(tz),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["data_location"] = str(self.data_location)
        return out

    def save(self, folder: Union[str, Path]) -> None:
        location = Path(folder) / SETTINGS_FILE_NAME
        try:
            location.parent.mkdir(parents=True, exist_ok=True)
            location.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        except OSError as ex:
            raise SettingsError(f"Couldn't write settings file {location}: {ex}") from ex

    def clear(self, folder: Union[str, Path]) -> "Settings":
        """Truncate the settings file; the next load recreates defaults."""
        location = Path(folder) / SETTINGS_FILE_NAME
        try:
            location.parent.mkdir(parents=True, exist_ok=True)
            location.write_text("", encoding="utf-8")
        except OSError as ex:
            raise SettingsError(f"Couldn't clear settings file {location}: {ex}") from ex
        return Settings.defaults(folder)

    def effective_tz(self, override: Optional[str] = None) -> str:
        """Timezone name after applying --tz and $DOUG_TZ overrides."""
        if override:
            return normalize_tz_name(override)
        env = (os.getenv("DOUG_TZ", "") or "").strip()
        if env:
            return normalize_tz_name(env)
        return self.tz


__all__ = [
    "SETTINGS_FILE_NAME",
    "Settings",
    "default_folder",
]
