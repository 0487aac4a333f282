"""Benachrichtigungs-Schnittstelle und Headless-Implementierung."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Protocol, Tuple, runtime_checkable

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Presenter(Protocol):
    """Zeigt Meldungen und Defektbilder an."""

    def info(self, message: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def show_image(self, path: Path) -> None:
        ...


class LoggingPresenter:
    """Presenter ohne UI: schreibt ins Log und merkt sich alle Meldungen."""

    def __init__(self, logger: logging.Logger = LOGGER) -> None:
        self.logger = logger
        self.messages: List[Tuple[str, str]] = []
        self.images: List[Path] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.messages.append(("error", message))
        self.logger.error(message)

    def show_image(self, path: Path) -> None:
        self.images.append(Path(path))
        self.logger.info("Defektbild: %s", path)
