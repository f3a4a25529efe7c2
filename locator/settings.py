"""Settings loaded from `config/settings.toml` with environment overrides."""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from locator.facilities.overpass import OVERPASS_API_URL
from locator.remote.nominatim import NOMINATIM_REVERSE_URL, NOMINATIM_SEARCH_URL

DEFAULT_SETTINGS_PATH = Path("config/settings.toml")

_ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "LOCATOR_USER_AGENT": ("provider", "user_agent"),
    "LOCATOR_SEARCH_URL": ("provider", "search_url"),
    "LOCATOR_REVERSE_URL": ("provider", "reverse_url"),
    "LOCATOR_OVERPASS_URL": ("facilities", "overpass_url"),
}


class ProviderSettings(BaseModel):
    search_url: str = NOMINATIM_SEARCH_URL
    reverse_url: str = NOMINATIM_REVERSE_URL
    user_agent: str = Field(default="hospital-locator/0.1", min_length=1)
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_connections: int = Field(default=4, gt=0)


class FacilitySettings(BaseModel):
    overpass_url: str = OVERPASS_API_URL
    timeout_seconds: float = Field(default=25.0, gt=0)
    default_radius_m: float = Field(default=25_000.0, gt=0)
    fallback_path: Path = Path("fallback_facilities.yaml")


class GazetteerSettings(BaseModel):
    path: Path = Path("gazetteer.csv")


class SearchSettings(BaseModel):
    default_limit: int = Field(default=10, gt=0)
    debounce_ms: int = Field(default=300, ge=0)


class LoggingSettings(BaseModel):
    config_path: Path = Path("logging.yaml")


class LocatorSettings(BaseModel):
    provider: ProviderSettings = ProviderSettings()
    facilities: FacilitySettings = FacilitySettings()
    gazetteer: GazetteerSettings = GazetteerSettings()
    search: SearchSettings = SearchSettings()
    logging: LoggingSettings = LoggingSettings()

    def resolve_paths(self, base_dir: Path) -> "LocatorSettings":
        """Return a copy whose relative paths are anchored at `base_dir`."""

        def _anchor(path: Path) -> Path:
            return path if path.is_absolute() else (base_dir / path).resolve()

        return self.model_copy(
            update={
                "facilities": self.facilities.model_copy(
                    update={"fallback_path": _anchor(self.facilities.fallback_path)}
                ),
                "gazetteer": self.gazetteer.model_copy(update={"path": _anchor(self.gazetteer.path)}),
                "logging": self.logging.model_copy(update={"config_path": _anchor(self.logging.config_path)}),
            }
        )


def _apply_env(raw: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    for variable, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            raw.setdefault(section, {})[key] = value
    return raw


def load_settings(path: Path = DEFAULT_SETTINGS_PATH, *, environ: Optional[Mapping[str, str]] = None) -> LocatorSettings:
    """Read the TOML configuration file, apply env overrides and validate it."""
    load_dotenv()
    raw: Dict[str, Any] = {}
    if path.exists():
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    raw = _apply_env(raw, os.environ if environ is None else environ)
    return LocatorSettings(**raw).resolve_paths(path.parent)
