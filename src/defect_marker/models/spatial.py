"""Einfache Geometriemodelle für die Elementsuche."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True, slots=True)
class Point3D:
    """Unveränderlicher Punkt im Modellkoordinatensystem."""

    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: Point3D) -> float:
        # math.dist skaliert intern und läuft bei großen Koordinaten nicht über
        return math.dist(self.as_tuple(), other.as_tuple())

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Point3D:
        if len(values) != 3:
            raise ValueError(f"Erwartet drei Koordinaten, erhalten: {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned Bounding Box."""

    min: Point3D
    max: Point3D

    @property
    def center(self) -> Point3D:
        return Point3D(
            self.min.x / 2.0 + self.max.x / 2.0,
            self.min.y / 2.0 + self.max.y / 2.0,
            self.min.z / 2.0 + self.max.z / 2.0,
        )

    @property
    def is_degenerate(self) -> bool:
        """True für Boxen ohne Volumen (min == max), typisch für Gruppenknoten."""
        return self.min == self.max

    @classmethod
    def from_corners(cls, first: Point3D, second: Point3D) -> BoundingBox:
        """Baut eine Box aus zwei beliebigen Ecken."""
        return cls(
            Point3D(min(first.x, second.x), min(first.y, second.y), min(first.z, second.z)),
            Point3D(max(first.x, second.x), max(first.y, second.y), max(first.z, second.z)),
        )

    @classmethod
    def from_center(cls, center: Point3D, half_size: float) -> BoundingBox:
        return cls(
            Point3D(center.x - half_size, center.y - half_size, center.z - half_size),
            Point3D(center.x + half_size, center.y + half_size, center.z + half_size),
        )
