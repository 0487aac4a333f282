"""Suche des nächstgelegenen Modellelements anhand von Bounding-Box-Zentren."""

from __future__ import annotations

import concurrent.futures
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple, TYPE_CHECKING

from defect_marker.errors import LocateCancelledError
from defect_marker.models.schemas import LocateResult
from defect_marker.models.spatial import BoundingBox, Point3D

if TYPE_CHECKING:  # pragma: no cover - nur für Typprüfungen relevant
    from defect_marker.data.model_provider import SpatialObjectProvider


LOGGER = logging.getLogger(__name__)

BoundsAccessor = Callable[[Any], Optional[BoundingBox]]


@dataclass(slots=True)
class _ChunkBest:
    distance: float
    index: int
    item: Any
    center: Point3D


class NearestElementLocator:
    """Linearer Scan über alle Kandidaten ohne räumlichen Index.

    Jeder Kandidat wird genau einmal besucht. Fehlende, degenerierte oder nicht
    abrufbare Boxen werden übersprungen; bei gleicher Distanz gewinnt der
    zuerst gefundene Kandidat.
    """

    def __init__(
        self,
        *,
        workers: int = 1,
        deadline: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.workers = max(1, int(workers))
        self.deadline = deadline
        self.cancel_event = cancel_event

    def locate(self, query: Point3D, candidates: Iterable[Any], bounds: BoundsAccessor) -> LocateResult:
        """Liefert den Kandidaten mit minimaler Distanz zum Zentrum seiner Box."""
        expires_at = time.monotonic() + self.deadline if self.deadline is not None else None
        if self.workers > 1:
            items = list(candidates)
            if len(items) > self.workers:
                return self._locate_parallel(query, items, bounds, expires_at)
            candidates = items
        best = self._scan(query, enumerate(candidates), bounds, expires_at)
        return self._to_result(best)

    # Internal -----------------------------------------------------------------------------

    def _locate_parallel(
        self,
        query: Point3D,
        items: Sequence[Any],
        bounds: BoundsAccessor,
        expires_at: Optional[float],
    ) -> LocateResult:
        chunk_size = math.ceil(len(items) / self.workers)
        chunks = [
            list(enumerate(items[start : start + chunk_size], start=start))
            for start in range(0, len(items), chunk_size)
        ]
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
            partials = list(executor.map(lambda chunk: self._scan(query, chunk, bounds, expires_at), chunks))
        evaluated = sum(part[1] for part in partials)
        skipped = sum(part[2] for part in partials)
        failures = sum(part[3] for part in partials)
        winners = [part[0] for part in partials if part[0] is not None]
        # Chunk-Minima nach Originalindex auflösen, nicht nach Ausführungsreihenfolge
        best = min(winners, key=lambda entry: (entry.distance, entry.index)) if winners else None
        return self._to_result((best, evaluated, skipped, failures))

    def _scan(
        self,
        query: Point3D,
        indexed: Iterable[Tuple[int, Any]],
        bounds: BoundsAccessor,
        expires_at: Optional[float],
    ) -> Tuple[Optional[_ChunkBest], int, int, int]:
        best: Optional[_ChunkBest] = None
        evaluated = skipped = failures = 0
        for index, item in indexed:
            self._check_cancelled(expires_at)
            evaluated += 1
            try:
                box = bounds(item)
                if box is None or box.is_degenerate:
                    skipped += 1
                    continue
                center = box.center
                distance = query.distance_to(center) if center.is_finite() else math.inf
            except Exception as exc:
                LOGGER.debug("Bounding Box für Kandidat %s nicht auswertbar: %s", index, exc)
                failures += 1
                continue
            if not math.isfinite(distance):
                skipped += 1
                continue
            if best is None or distance < best.distance:
                best = _ChunkBest(distance, index, item, center)
        return best, evaluated, skipped, failures

    def _to_result(self, scan: Tuple[Optional[_ChunkBest], int, int, int]) -> LocateResult:
        best, evaluated, skipped, failures = scan
        if best is None:
            LOGGER.debug("Kein verwendbarer Kandidat unter %s Elementen.", evaluated)
            return LocateResult.not_found(evaluated=evaluated, skipped=skipped, failures=failures)
        return LocateResult(
            item=best.item,
            distance=best.distance,
            center=best.center,
            index=best.index,
            evaluated=evaluated,
            skipped=skipped,
            failures=failures,
        )

    def _check_cancelled(self, expires_at: Optional[float]) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise LocateCancelledError("Elementsuche wurde abgebrochen.")
        if expires_at is not None and time.monotonic() > expires_at:
            raise LocateCancelledError("Zeitlimit für die Elementsuche überschritten.")


def locate_nearest(
    query: Point3D,
    provider: "SpatialObjectProvider",
    *,
    workers: int = 1,
    deadline: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> LocateResult:
    """Kurzform: sucht im Kandidatenbestand eines Providers."""
    locator = NearestElementLocator(workers=workers, deadline=deadline, cancel_event=cancel_event)
    return locator.locate(query, provider.iter_candidates(), provider.bounding_box)

