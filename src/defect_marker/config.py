"""Konfiguration des Defect Markers (Ordner, Bildpflicht, Suchparameter)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from defect_marker.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "DEFECT_MARKER_"
ENV_CONFIG_FILE = f"{ENV_PREFIX}CONFIG"

_PATH_FIELDS = {"reports_dir", "images_dir"}
_BOOL_FIELDS = {"require_image", "download_images", "announce_report"}


@dataclass(frozen=True, slots=True)
class DefectMarkerConfig:
    """Alle Einstellungen, die früher als Konstanten im Add-in steckten."""

    reports_dir: Optional[Path] = None
    images_dir: Optional[Path] = None
    report_pattern: str = "*.json"
    require_image: bool = True
    download_images: bool = False
    download_timeout: float = 10.0
    announce_report: bool = True
    workers: int = 1
    deadline_seconds: Optional[float] = None

    def merged(self, overrides: Mapping[str, Any]) -> DefectMarkerConfig:
        """Liefert eine Kopie mit überschriebenen Werten; ``None`` wird ignoriert."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **_coerce(values))

    def validate(self) -> DefectMarkerConfig:
        if self.reports_dir is None:
            raise ConfigurationError("Kein Berichtsordner (reports_dir) konfiguriert.")
        if self.require_image and self.images_dir is None:
            raise ConfigurationError("Kein Bildordner (images_dir) konfiguriert.")
        if self.workers < 1:
            raise ConfigurationError(f"workers muss >= 1 sein, erhalten: {self.workers}")
        if self.download_timeout <= 0:
            raise ConfigurationError("download_timeout muss positiv sein.")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ConfigurationError("deadline_seconds muss positiv sein.")
        return self

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            payload[item.name] = str(value) if isinstance(value, Path) else value
        return payload

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> DefectMarkerConfig:
        return cls().merged(payload)

    @classmethod
    def from_file(cls, path: Path) -> DefectMarkerConfig:
        """Lädt eine JSON-Konfigurationsdatei."""
        path = Path(path).expanduser()
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Konfiguration {path} konnte nicht gelesen werden: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigurationError(f"Konfiguration {path} muss ein JSON-Objekt sein.")
        LOGGER.debug("Konfiguration geladen: %s", path)
        return cls.from_mapping(payload)


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Liest ``DEFECT_MARKER_*``-Variablen, z. B. ``DEFECT_MARKER_IMAGES_DIR``."""
    environ = os.environ if environ is None else environ
    known = {item.name for item in fields(DefectMarkerConfig)}
    overrides: Dict[str, str] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX) or key == ENV_CONFIG_FILE:
            continue
        name = key[len(ENV_PREFIX) :].lower()
        if name in known and value.strip():
            overrides[name] = value.strip()
    return overrides


def load_config(
    config_file: Optional[Path] = None,
    *,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DefectMarkerConfig:
    """Defaults < Konfigurationsdatei < Umgebung < explizite Overrides."""
    environ = os.environ if environ is None else environ
    config_file = config_file or (Path(environ[ENV_CONFIG_FILE]) if environ.get(ENV_CONFIG_FILE) else None)
    config = DefectMarkerConfig.from_file(config_file) if config_file else DefectMarkerConfig()
    config = config.merged(env_overrides(environ))
    if overrides:
        config = config.merged(overrides)
    return config


def _coerce(values: Mapping[str, Any]) -> Dict[str, Any]:
    known = {item.name for item in fields(DefectMarkerConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unbekannte Konfigurationsschlüssel: {', '.join(unknown)}")
    coerced: Dict[str, Any] = {}
    for key, value in values.items():
        try:
            if key in _PATH_FIELDS:
                coerced[key] = Path(value).expanduser()
            elif key in _BOOL_FIELDS:
                coerced[key] = _parse_bool(value)
            elif key == "workers":
                coerced[key] = int(value)
            elif key in {"download_timeout", "deadline_seconds"}:
                coerced[key] = float(value)
            else:
                coerced[key] = str(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Ungültiger Wert für {key}: {value!r}") from exc
    return coerced


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on", "ja"}:
        return True
    if text in {"0", "false", "no", "off", "nein"}:
        return False
    raise ValueError(value)
