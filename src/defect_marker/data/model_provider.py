"""Provider-Schnittstelle für Modellelemente und In-Memory-Implementierung."""

from __future__ import annotations

import itertools
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, runtime_checkable

from defect_marker.models.schemas import ModelElement
from defect_marker.models.spatial import BoundingBox, Point3D

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class SpatialObjectProvider(Protocol):
    """Kapselt den Zugriff auf die Elemente eines geladenen Modells."""

    def iter_candidates(self) -> Iterable[Any]:
        ...

    def bounding_box(self, candidate: Any) -> Optional[BoundingBox]:
        ...

    def display_name(self, candidate: Any) -> str:
        ...


@runtime_checkable
class ModelSelection(Protocol):
    """Optionale Fähigkeit, ein Element im Host zu markieren."""

    def select(self, candidate: Any) -> None:
        ...


class InMemoryModelProvider:
    """Modellbaum aus ``ModelElement``-Knoten, z. B. aus einem JSON-Export."""

    def __init__(self, roots: Sequence[ModelElement], name: str = "model") -> None:
        self.roots: List[ModelElement] = list(roots)
        self.name = name
        self.selection: List[ModelElement] = []

    # Provider API ------------------------------------------------------------------------

    def iter_candidates(self) -> Iterator[ModelElement]:
        for root in self.roots:
            yield from root.descendants_and_self()

    def bounding_box(self, candidate: ModelElement) -> Optional[BoundingBox]:
        return candidate.bounds

    def display_name(self, candidate: ModelElement) -> str:
        return candidate.name or candidate.element_id

    def select(self, candidate: ModelElement) -> None:
        self.selection.append(candidate)

    # Serialisierung ----------------------------------------------------------------------

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> InMemoryModelProvider:
        items = payload.get("items")
        if not isinstance(items, list):
            raise ValueError("Modell-Export benötigt eine Liste 'items'.")
        counter = itertools.count(1)
        roots = [_element_from_dict(entry, counter) for entry in items]
        return cls(roots, name=str(payload.get("name") or "model"))

    @classmethod
    def load_from_json(cls, source: Path) -> InMemoryModelProvider:
        """Lädt ein exportiertes Modell aus einer JSON-Datei."""
        payload = json.loads(Path(source).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Modell-Export {source} muss ein JSON-Objekt sein.")
        provider = cls.from_dict(payload)
        LOGGER.info("Modell '%s' geladen (%s Elemente).", provider.name, sum(1 for _ in provider.iter_candidates()))
        return provider

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "items": [root.to_dict() for root in self.roots]}

    def save_to_file(self, destination: Path) -> None:
        destination.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")


def _element_from_dict(entry: Dict[str, Any], counter: Iterator[int]) -> ModelElement:
    number = next(counter)
    bounds = None
    bbox = entry.get("bbox")
    if bbox:
        bounds = BoundingBox.from_corners(Point3D.from_sequence(bbox["min"]), Point3D.from_sequence(bbox["max"]))
    return ModelElement(
        element_id=str(entry.get("id") or f"element_{number}"),
        name=str(entry.get("name") or ""),
        bounds=bounds,
        children=[_element_from_dict(child, counter) for child in entry.get("children", [])],
    )
