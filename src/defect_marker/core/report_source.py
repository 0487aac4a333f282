"""Findet und liest den jüngsten Defektbericht aus dem Berichtsordner."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from defect_marker.errors import InputUnavailableError
from defect_marker.models.schemas import DefectReport
from defect_marker.models.spatial import Point3D

LOGGER = logging.getLogger(__name__)


class DefectReportSource:
    """Liest Berichte der Form ``{"coordinates": {"x", "y", "z"}, "image_path"}``."""

    COORDINATE_KEYS = ("x", "y", "z")

    def __init__(self, reports_dir: Path, pattern: str = "*.json") -> None:
        self.reports_dir = Path(reports_dir)
        self.pattern = pattern

    def latest_report_path(self) -> Optional[Path]:
        """Neueste Datei nach Änderungszeit, bei Gleichstand nach Dateiname."""
        newest: Optional[Path] = None
        newest_key = None
        for path in self._iter_report_files():
            try:
                key = (path.stat().st_mtime, path.name)
            except OSError as exc:  # pragma: no cover - Datei zwischenzeitlich gelöscht
                LOGGER.warning("Konnte %s nicht prüfen: %s", path, exc)
                continue
            if newest_key is None or key > newest_key:
                newest, newest_key = path, key
        return newest

    def read_latest(self) -> DefectReport:
        path = self.latest_report_path()
        if path is None:
            raise InputUnavailableError(f"Keine Berichtsdatei ({self.pattern}) in {self.reports_dir} gefunden.")
        LOGGER.info("Verwende Defektbericht: %s", path)
        return self.load_report(path)

    def load_report(self, path: Path) -> DefectReport:
        path = Path(path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8-sig"))
        except FileNotFoundError as exc:
            raise InputUnavailableError(f"Berichtsdatei nicht gefunden: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise InputUnavailableError(f"Berichtsdatei {path} konnte nicht gelesen werden: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise InputUnavailableError(f"Berichtsdatei {path} enthält kein gültiges JSON: {exc}") from exc
        return self.parse_report(payload, source=path)

    def parse_report(self, payload: Any, source: Optional[Path] = None) -> DefectReport:
        if not isinstance(payload, dict):
            raise InputUnavailableError("Der Defektbericht muss ein JSON-Objekt sein.")
        location = self._parse_coordinates(payload.get("coordinates"))
        image_reference = payload.get("image_path")
        # Fehlendes Bild entscheidet der Service (require_image), nicht der Parser
        if not isinstance(image_reference, str) or not image_reference.strip():
            image_reference = None
        return DefectReport(
            location=location,
            image_reference=image_reference.strip() if image_reference else None,
            source=source,
            raw=payload,
        )

    # Internal -----------------------------------------------------------------------------

    def _iter_report_files(self) -> Iterable[Path]:
        if not self.reports_dir.is_dir():
            LOGGER.warning("Berichtsordner existiert nicht: %s", self.reports_dir)
            return
        for path in self.reports_dir.glob(self.pattern):
            if path.is_file():
                yield path

    def _parse_coordinates(self, coordinates: Any) -> Point3D:
        if not isinstance(coordinates, dict) or any(coordinates.get(key) is None for key in self.COORDINATE_KEYS):
            raise InputUnavailableError("Die Koordinaten X, Y oder Z wurden im Bericht nicht gefunden.")
        values: Dict[str, float] = {}
        for key in self.COORDINATE_KEYS:
            values[key] = _to_finite_float(coordinates[key], key)
        return Point3D(values["x"], values["y"], values["z"])


def _to_finite_float(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise InputUnavailableError(f"Koordinate {key.upper()} ist keine Zahl: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InputUnavailableError(f"Koordinate {key.upper()} ist keine Zahl: {value!r}") from exc
    if not math.isfinite(number):
        raise InputUnavailableError(f"Koordinate {key.upper()} ist nicht endlich: {value!r}")
    return number
