"""Ordnet Bildreferenzen aus Defektberichten dem lokalen Bildordner zu."""

from __future__ import annotations

import logging
from pathlib import Path, PureWindowsPath
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from defect_marker.errors import ImageUnavailableError

LOGGER = logging.getLogger(__name__)


class ImageResolver:
    """Löst Bildreferenzen auf ``images_dir / <Dateiname>`` auf.

    Vom Bericht wird nur der Dateiname übernommen, egal ob die Referenz ein
    Windows-Pfad, ein POSIX-Pfad oder eine URL ist. Optional werden fehlende
    ``http(s)``-Bilder heruntergeladen.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        images_dir: Path,
        *,
        download: bool = False,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.images_dir = Path(images_dir)
        self.download = download
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    @staticmethod
    def image_name(reference: str) -> str:
        reference = reference.strip()
        if _is_url(reference):
            reference = unquote(urlparse(reference).path)
        # PureWindowsPath versteht sowohl "\" als auch "/" als Trenner
        return PureWindowsPath(reference).name

    def resolve(self, reference: str) -> Path:
        """Liefert den lokalen Bildpfad oder wirft ``ImageUnavailableError``."""
        name = self.image_name(reference)
        if not name:
            raise ImageUnavailableError(f"Aus der Bildreferenz lässt sich kein Dateiname ableiten: {reference!r}")
        candidate = self.images_dir / name
        if candidate.is_file():
            return candidate
        if self.download and _is_url(reference):
            return self._download(reference, candidate)
        raise ImageUnavailableError(f"Die Bilddatei wurde nicht gefunden: {candidate}")

    # Internal -----------------------------------------------------------------------------

    def _download(self, url: str, destination: Path) -> Path:
        LOGGER.info("Lade Defektbild herunter: %s", url)
        partial = destination.with_name(destination.name + ".part")
        try:
            self.images_dir.mkdir(parents=True, exist_ok=True)
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with partial.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
            partial.replace(destination)
        except (requests.RequestException, OSError) as exc:
            partial.unlink(missing_ok=True)
            raise ImageUnavailableError(f"Bild konnte nicht heruntergeladen werden ({url}): {exc}") from exc
        return destination


def _is_url(reference: str) -> bool:
    return urlparse(reference).scheme.lower() in {"http", "https"}
