"""Host-side entry point, executed inside the review application's Python bridge (pythonnet)."""

import argparse
import logging
import sys
from pathlib import Path

import clr

clr.AddReference("Autodesk.Navisworks.Api")
from Autodesk.Navisworks.Api import Application  # noqa: E402

from defect_marker.config import load_config  # noqa: E402
from defect_marker.errors import ConfigurationError  # noqa: E402
from defect_marker.gui.tk_presenter import TkPresenter  # noqa: E402
from defect_marker.host.navisworks import NavisworksModelProvider, host_config  # noqa: E402
from defect_marker.services.defect_service import DefectMarkerService  # noqa: E402


def execute(*parameters: str) -> int:
    """Add-in Einstiegspunkt: 0 bei Erfolg, 1 bei Fehler."""
    args = parse_args(list(parameters))
    presenter = TkPresenter()
    try:
        try:
            config = host_config(load_config(args.config).validate())
        except ConfigurationError as exc:
            presenter.error(str(exc))
            return 1
        document = Application.ActiveDocument
        provider = NavisworksModelProvider(document) if document is not None else None
        return DefectMarkerService(config, presenter).execute(provider)
    finally:
        presenter.close()


def parse_args(argv: list) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Defect Marker Add-in")
    parser.add_argument("--config", type=Path, default=None, help="JSON-Konfiguration (sonst DEFECT_MARKER_CONFIG)")
    return parser.parse_args(argv)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    sys.exit(execute(*sys.argv[1:]))
