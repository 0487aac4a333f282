"""Fehlertypen des Defect Markers."""

from __future__ import annotations


class DefectMarkerError(RuntimeError):
    """Basisklasse aller erwarteten Fehler im Defect-Workflow."""


class InputUnavailableError(DefectMarkerError):
    """Kein Defektbericht vorhanden oder Koordinaten fehlen/ungültig."""


class ImageUnavailableError(DefectMarkerError):
    """Das referenzierte Defektbild ist lokal nicht auffindbar."""


class DocumentUnavailableError(DefectMarkerError):
    """Im Host ist kein Dokument bzw. kein Modell geladen."""


class LocateCancelledError(DefectMarkerError):
    """Die Suche wurde per Deadline oder Cancel-Event abgebrochen."""


class ConfigurationError(DefectMarkerError):
    """Ungültige oder unvollständige Konfiguration."""
