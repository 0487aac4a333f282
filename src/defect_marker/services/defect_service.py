"""High-Level-Service, der Bericht, Bild, Elementsuche und Anzeige verbindet."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from defect_marker.config import DefectMarkerConfig
from defect_marker.core.image_resolver import ImageResolver
from defect_marker.core.locator import NearestElementLocator
from defect_marker.core.report_source import DefectReportSource
from defect_marker.data.model_provider import ModelSelection, SpatialObjectProvider
from defect_marker.errors import (
    DefectMarkerError,
    DocumentUnavailableError,
    ImageUnavailableError,
    InputUnavailableError,
)
from defect_marker.gui.presenter import LoggingPresenter, Presenter
from defect_marker.models.schemas import DefectOutcome, DefectReport, OutcomeStatus

LOGGER = logging.getLogger(__name__)


class DefectMarkerService:
    """Markiert das zu einem Defektbericht nächstgelegene Modellelement.

    Der Service liefert immer ein ``DefectOutcome``; Meldungen gehen an den
    Presenter, der Exit-Code ergibt sich aus dem Status.
    """

    def __init__(
        self,
        config: DefectMarkerConfig,
        presenter: Optional[Presenter] = None,
        *,
        report_source: Optional[DefectReportSource] = None,
        image_resolver: Optional[ImageResolver] = None,
        locator: Optional[NearestElementLocator] = None,
    ) -> None:
        self.config = config
        self.presenter: Presenter = presenter or LoggingPresenter()
        self.report_source = report_source or (
            DefectReportSource(config.reports_dir, config.report_pattern) if config.reports_dir else None
        )
        self.image_resolver = image_resolver or (
            ImageResolver(
                config.images_dir,
                download=config.download_images,
                timeout=config.download_timeout,
            )
            if config.images_dir
            else None
        )
        self.locator = locator or NearestElementLocator(
            workers=config.workers,
            deadline=config.deadline_seconds,
        )

    # Public API --------------------------------------------------------------------------

    def execute(self, provider: Optional[SpatialObjectProvider]) -> int:
        """Einstiegspunkt für den Host: 0 bei Erfolg, sonst 1."""
        return self.run(provider).exit_code

    def run(self, provider: Optional[SpatialObjectProvider]) -> DefectOutcome:
        """Kompletter Ablauf: Bericht lesen, Bild prüfen, Element suchen, anzeigen."""
        try:
            outcome = self._run(provider)
        except Exception as exc:
            LOGGER.exception("Unerwarteter Fehler im Defect-Workflow")
            outcome = DefectOutcome(OutcomeStatus.FAILED, f"Es ist ein Fehler aufgetreten: {exc}")
        self._report_failure(outcome)
        return outcome

    def read_report(self) -> DefectReport:
        if self.report_source is None:
            raise InputUnavailableError("Kein Berichtsordner konfiguriert.")
        return self.report_source.read_latest()

    def resolve_image(self, report: DefectReport) -> Path:
        if not report.image_reference:
            raise ImageUnavailableError("Der Pfad zum Bild wurde im Bericht nicht gefunden.")
        if self.image_resolver is None:
            raise ImageUnavailableError("Kein Bildordner konfiguriert.")
        return self.image_resolver.resolve(report.image_reference)

    def locate_defect(
        self,
        provider: Optional[SpatialObjectProvider],
        report: Optional[DefectReport] = None,
    ) -> DefectOutcome:
        """Sucht und markiert das Element, ohne das Bild zu benötigen."""
        if provider is None:
            return DefectOutcome(OutcomeStatus.DOCUMENT_UNAVAILABLE, "Kein aktives Dokument gefunden.")
        if report is None:
            try:
                report = self.read_report()
            except DefectMarkerError as exc:
                return self._failure_for(exc)
        try:
            result = self.locator.locate(report.location, provider.iter_candidates(), provider.bounding_box)
        except DefectMarkerError as exc:
            outcome = self._failure_for(exc)
            outcome.report = report
            return outcome
        if result.failures:
            LOGGER.warning("%s Elemente ohne abrufbare Bounding Box übersprungen.", result.failures)
        if not result.found:
            LOGGER.info("Kein Element mit Geometrie unter %s Kandidaten.", result.evaluated)
            return DefectOutcome(
                OutcomeStatus.NO_MATCH,
                "Das Element wurde im Modell nicht gefunden.",
                report=report,
                result=result,
            )
        name = provider.display_name(result.item)
        if isinstance(provider, ModelSelection):
            provider.select(result.item)
        LOGGER.info("Nächstes Element: %s (Distanz %.3f)", name, result.distance)
        return DefectOutcome(
            OutcomeStatus.SUCCESS,
            f"Element gefunden: {name}",
            report=report,
            result=result,
            element_name=name,
        )

    def show_defect_image(self, report: DefectReport) -> DefectOutcome:
        """Zeigt nur das Defektbild an."""
        try:
            image_path = self.resolve_image(report)
        except ImageUnavailableError as exc:
            return DefectOutcome(OutcomeStatus.IMAGE_UNAVAILABLE, str(exc), report=report)
        self.presenter.show_image(image_path)
        return DefectOutcome(OutcomeStatus.SUCCESS, "", report=report, image_path=image_path)

    # Private Hilfen ----------------------------------------------------------------------

    def _run(self, provider: Optional[SpatialObjectProvider]) -> DefectOutcome:
        if provider is None:
            return DefectOutcome(OutcomeStatus.DOCUMENT_UNAVAILABLE, "Kein aktives Dokument gefunden.")
        try:
            report = self.read_report()
        except DefectMarkerError as exc:
            return self._failure_for(exc)

        image_path: Optional[Path] = None
        try:
            image_path = self.resolve_image(report)
        except ImageUnavailableError as exc:
            if self.config.require_image:
                return DefectOutcome(OutcomeStatus.IMAGE_UNAVAILABLE, str(exc), report=report)
            LOGGER.warning("Fahre ohne Defektbild fort: %s", exc)

        if self.config.announce_report:
            self.presenter.info(self._describe_report(report, image_path))

        outcome = self.locate_defect(provider, report)
        outcome.image_path = image_path
        if outcome.status is OutcomeStatus.SUCCESS:
            self.presenter.info(outcome.message)
            if image_path is not None:
                self.presenter.show_image(image_path)
        return outcome

    def _report_failure(self, outcome: DefectOutcome) -> None:
        if outcome.status is OutcomeStatus.NO_MATCH:
            self.presenter.warning(outcome.message)
        elif outcome.exit_code != 0:
            self.presenter.error(outcome.message)

    @staticmethod
    def _failure_for(exc: DefectMarkerError) -> DefectOutcome:
        if isinstance(exc, DocumentUnavailableError):
            return DefectOutcome(OutcomeStatus.DOCUMENT_UNAVAILABLE, str(exc))
        if isinstance(exc, InputUnavailableError):
            return DefectOutcome(OutcomeStatus.INPUT_UNAVAILABLE, str(exc))
        return DefectOutcome(OutcomeStatus.FAILED, str(exc))

    @staticmethod
    def _describe_report(report: DefectReport, image_path: Optional[Path]) -> str:
        location = report.location
        lines = [f"Defektkoordinaten: X = {location.x}, Y = {location.y}, Z = {location.z}"]
        if image_path is not None:
            lines.append(f"Bild gefunden unter: {image_path}")
        return "\n".join(lines)


def run_defect_marker(
    provider: Optional[Any],
    config: DefectMarkerConfig,
    presenter: Optional[Presenter] = None,
) -> DefectOutcome:
    """Kurzform für Skripte: Service bauen und einmal ausführen."""
    return DefectMarkerService(config, presenter).run(provider)
