"""Zentrale Datenmodelle für den Defect Marker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from defect_marker.models.spatial import BoundingBox, Point3D


@dataclass(slots=True)
class DefectReport:
    """Ein eingelesener Defektbericht (Koordinate + Bildreferenz)."""

    location: Point3D
    image_reference: Optional[str]
    source: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "coordinates": {"x": self.location.x, "y": self.location.y, "z": self.location.z},
            "image_path": self.image_reference,
            "source": str(self.source) if self.source else None,
        }


@dataclass(slots=True)
class ModelElement:
    """Element eines exportierten Modellbaums."""

    element_id: str
    name: str
    bounds: Optional[BoundingBox] = None
    children: List["ModelElement"] = field(default_factory=list)

    def descendants_and_self(self) -> Iterator["ModelElement"]:
        """Depth-first pre-order, analog zu ``DescendantsAndSelf`` im Host."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"id": self.element_id, "name": self.name}
        if self.bounds is not None:
            payload["bbox"] = {
                "min": list(self.bounds.min.as_tuple()),
                "max": list(self.bounds.max.as_tuple()),
            }
        if self.children:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


@dataclass(frozen=True, slots=True)
class LocateResult:
    """Ergebnis einer Nächstes-Element-Suche.

    ``item`` ist ``None``, wenn kein Kandidat eine verwendbare Bounding Box hatte.
    """

    item: Any = None
    distance: Optional[float] = None
    center: Optional[Point3D] = None
    index: Optional[int] = None
    evaluated: int = 0
    skipped: int = 0
    failures: int = 0

    @property
    def found(self) -> bool:
        return self.distance is not None

    @classmethod
    def not_found(cls, evaluated: int = 0, skipped: int = 0, failures: int = 0) -> LocateResult:
        return cls(evaluated=evaluated, skipped=skipped, failures=failures)


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    NO_MATCH = "no_match"
    INPUT_UNAVAILABLE = "input_unavailable"
    IMAGE_UNAVAILABLE = "image_unavailable"
    DOCUMENT_UNAVAILABLE = "document_unavailable"
    FAILED = "failed"


_SOFT_STATUSES = {OutcomeStatus.SUCCESS, OutcomeStatus.NO_MATCH}


@dataclass(slots=True)
class DefectOutcome:
    """Strukturierter Ausgang eines Workflow-Laufs."""

    status: OutcomeStatus
    message: str = ""
    report: Optional[DefectReport] = None
    image_path: Optional[Path] = None
    result: Optional[LocateResult] = None
    element_name: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.status in _SOFT_STATUSES else 1

    def to_dict(self) -> Dict[str, object]:
        result = self.result
        return {
            "status": self.status.value,
            "exit_code": self.exit_code,
            "message": self.message,
            "report": self.report.to_dict() if self.report else None,
            "image_path": str(self.image_path) if self.image_path else None,
            "element": self.element_name,
            "distance": result.distance if result else None,
            "center": list(result.center.as_tuple()) if result and result.center else None,
            "scan": (
                {"evaluated": result.evaluated, "skipped": result.skipped, "failures": result.failures}
                if result
                else None
            ),
        }
