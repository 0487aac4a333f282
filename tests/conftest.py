import json
import os
from pathlib import Path

import pytest

from defect_marker.models.schemas import ModelElement
from defect_marker.models.spatial import BoundingBox, Point3D


def box_at(x, y, z, half=0.5):
    return BoundingBox.from_center(Point3D(x, y, z), half)


def degenerate_at(x, y, z):
    point = Point3D(x, y, z)
    return BoundingBox(point, point)


def element(element_id, bounds=None, children=None):
    return ModelElement(element_id=element_id, name=element_id.upper(), bounds=bounds, children=children or [])


@pytest.fixture
def write_report(tmp_path):
    """Schreibt Berichte in ``tmp_path/reports`` mit steigender mtime."""
    reports = tmp_path / "reports"
    reports.mkdir()
    counter = {"mtime": 1_700_000_000}

    def _write(name="report.json", payload=None, mtime=None):
        path = reports / name
        if isinstance(payload, str):
            path.write_text(payload, encoding="utf-8")
        else:
            path.write_text(json.dumps(payload), encoding="utf-8")
        counter["mtime"] += 10
        stamp = mtime if mtime is not None else counter["mtime"]
        os.utime(path, (stamp, stamp))
        return path

    _write.directory = reports
    return _write


@pytest.fixture
def images_dir(tmp_path) -> Path:
    images = tmp_path / "images"
    images.mkdir()
    return images
