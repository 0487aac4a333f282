"""Adapter für das Dokumentmodell des Review-Hosts (Navisworks .NET API via pythonnet)."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from defect_marker.config import DefectMarkerConfig
from defect_marker.errors import DocumentUnavailableError
from defect_marker.models.spatial import BoundingBox, Point3D

LOGGER = logging.getLogger(__name__)


class NavisworksModelProvider:
    """Liefert ``ModelItem``-Objekte des ersten Modells im aktiven Dokument.

    Es wird nur über Attribute der Host-Objekte gearbeitet (``Models``,
    ``RootItem``, ``DescendantsAndSelf``, ``BoundingBox()``), sodass der Adapter
    ohne geladene Host-Assemblies importierbar bleibt.
    """

    def __init__(self, document: Any) -> None:
        if document is None:
            raise DocumentUnavailableError("Kein aktives Dokument gefunden.")
        self.document = document

    @property
    def root_item(self) -> Any:
        models = getattr(self.document, "Models", None)
        model = getattr(models, "First", None) if models is not None else None
        if model is None:
            raise DocumentUnavailableError("Im aktiven Dokument ist kein Modell geladen.")
        return model.RootItem

    def iter_candidates(self) -> Iterator[Any]:
        yield from self.root_item.DescendantsAndSelf

    def bounding_box(self, candidate: Any) -> Optional[BoundingBox]:
        return convert_bounding_box(candidate.BoundingBox())

    def display_name(self, candidate: Any) -> str:
        name = getattr(candidate, "DisplayName", None)
        return str(name) if name else "<unbenannt>"

    def select(self, candidate: Any) -> None:
        self.document.CurrentSelection.Add(candidate)
        LOGGER.debug("Element zur Auswahl hinzugefügt: %s", self.display_name(candidate))


def convert_bounding_box(host_box: Any) -> Optional[BoundingBox]:
    """Wandelt eine ``BoundingBox3D`` des Hosts in eine ``BoundingBox`` um."""
    if host_box is None or getattr(host_box, "IsEmpty", False):
        return None
    return BoundingBox(_convert_point(host_box.Min), _convert_point(host_box.Max))


def _convert_point(host_point: Any) -> Point3D:
    return Point3D(float(host_point.X), float(host_point.Y), float(host_point.Z))


def host_config(config: DefectMarkerConfig) -> DefectMarkerConfig:
    """Die Host-API darf nur aus dem Hauptthread aufgerufen werden: Scan ohne Thread-Pool."""
    if config.workers > 1:
        LOGGER.info("workers=%s wird im Host ignoriert, Elementsuche läuft sequenziell.", config.workers)
        return config.merged({"workers": 1})
    return config
