"""Command line entry point for the Defect Marker."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from defect_marker.config import load_config
from defect_marker.core.report_source import DefectReportSource
from defect_marker.data.model_provider import InMemoryModelProvider
from defect_marker.errors import ConfigurationError
from defect_marker.gui.presenter import LoggingPresenter, Presenter
from defect_marker.services.defect_service import DefectMarkerService

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Markiert das zu einem Defektbericht nächstgelegene Modellelement")
    parser.add_argument("--model", type=Path, required=True, help="JSON-Export des Modells (Elementbaum mit Bounding Boxes)")
    parser.add_argument("--reports-dir", type=Path, default=None, help="Ordner mit Defektberichten (*.json)")
    parser.add_argument("--images-dir", type=Path, default=None, help="Ordner mit Defektbildern")
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Konkreter Bericht statt des jüngsten im Berichtsordner",
    )
    parser.add_argument("--config", type=Path, default=None, help="Optionale JSON-Konfigurationsdatei")
    parser.add_argument("--no-gui", action="store_true", help="Keine Dialoge, Meldungen nur ins Log")
    parser.add_argument(
        "--allow-missing-image",
        action="store_true",
        help="Elementsuche auch dann ausführen, wenn das Bild fehlt",
    )
    parser.add_argument(
        "--download-images",
        action="store_true",
        help="Fehlende Bilder mit http(s)-Referenz in den Bildordner herunterladen",
    )
    parser.add_argument("--workers", type=int, default=None, help="Threads für die Elementsuche (Standard 1)")
    parser.add_argument("--deadline", type=float, default=None, help="Zeitlimit der Elementsuche in Sekunden")
    parser.add_argument("--verbose", action="store_true", help="Debug-Logging aktivieren")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    overrides = {
        "reports_dir": args.reports_dir or (args.report.parent if args.report else None),
        "images_dir": args.images_dir,
        "workers": args.workers,
        "deadline_seconds": args.deadline,
        "require_image": False if args.allow_missing_image else None,
        "download_images": True if args.download_images else None,
    }
    try:
        config = load_config(args.config, overrides=overrides).validate()
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 2

    presenter = _build_presenter(args.no_gui)
    try:
        provider = InMemoryModelProvider.load_from_json(args.model)
    except (OSError, ValueError, KeyError) as exc:
        presenter.error(f"Modell konnte nicht geladen werden: {exc}")
        return 1

    report_source = _SingleReportSource(args.report) if args.report else None
    service = DefectMarkerService(config, presenter, report_source=report_source)
    outcome = service.run(provider)
    print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    return outcome.exit_code


class _SingleReportSource(DefectReportSource):
    """Liest immer genau die angegebene Berichtsdatei."""

    def __init__(self, report: Path) -> None:
        super().__init__(report.parent)
        self.report = report

    def latest_report_path(self) -> Optional[Path]:
        return self.report


def _build_presenter(headless: bool) -> Presenter:
    if headless:
        return LoggingPresenter()
    from defect_marker.gui.tk_presenter import TkPresenter

    return TkPresenter()


if __name__ == "__main__":
    raise SystemExit(main())
