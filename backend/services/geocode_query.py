"""
Place search service used by the search, map and payment screens.

Owns the current prediction list and the loading flag. Observers subscribe to
``SearchState`` snapshots instead of polling. Every search takes a ticket from
a monotonically increasing sequence; a response whose ticket is no longer the
newest is handed back to its caller but never published.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

from domain.errors import GeocodingError, NoGeometryError
from domain.models import Coordinates, GeoBounds, NormalizedPrediction, SearchState
from services.geocoding import NominatimClient
from services.predictions import normalize_predictions, parse_coordinate, parse_records
from settings import settings

logger = logging.getLogger(__name__)

Listener = Callable[[SearchState], None]


def _point_from_geometry(geometry: Any) -> Optional[Coordinates]:
    """Read a point from ``{"lat", "lon"}`` or a GeoJSON Point."""
    if not isinstance(geometry, dict):
        return None
    if "lat" in geometry or "lon" in geometry:
        lat = parse_coordinate(geometry.get("lat"))
        lon = parse_coordinate(geometry.get("lon"))
    elif geometry.get("type") == "Point":
        coords = geometry.get("coordinates")
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            return None
        # GeoJSON order is lon, lat
        lon = parse_coordinate(coords[0])
        lat = parse_coordinate(coords[1])
    else:
        return None
    if lat is None or lon is None:
        return None
    return Coordinates(latitude=lat, longitude=lon)


def extract_coordinates(details: dict) -> Coordinates:
    """Pull coordinates out of a details response or raise NoGeometryError."""
    point = _point_from_geometry(details.get("geometry"))
    if point is None:
        point = _point_from_geometry(details.get("centroid"))
    if point is None:
        raise NoGeometryError(f"No geometry for place {details.get('place_id')!r}")
    return point


class GeocodeQueryService:
    def __init__(
        self,
        client: Optional[NominatimClient] = None,
        bounds: Optional[GeoBounds] = None,
        language: Optional[str] = None,
        country_codes: Optional[str] = None,
        region_hint: Optional[str] = None,
    ):
        self.client = client or NominatimClient()
        self.bounds = bounds or GeoBounds.from_tuple(settings.GEOCODER_REGION_BOUNDS)
        self.language = language if language is not None else settings.GEOCODER_LANGUAGE
        self.country_codes = (
            country_codes if country_codes is not None else settings.GEOCODER_COUNTRY_CODES
        )
        self.region_hint = region_hint if region_hint is not None else settings.GEOCODER_REGION_HINT
        self._lock = threading.Lock()
        self._search_seq = 0
        self._state = SearchState()
        self._listeners: List[Listener] = []

    # ---- observation ----

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def predictions(self) -> List[NormalizedPrediction]:
        return list(self._state.predictions)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes. Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: SearchState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Search state listener %r failed", listener)

    def _update_if_current(self, seq: int, **changes) -> Optional[SearchState]:
        """Apply ``changes`` to the state when ``seq`` is still the newest search."""
        with self._lock:
            if seq != self._search_seq:
                return None
            current = self._state
            self._state = SearchState(
                query=changes.get("query", current.query),
                loading=changes.get("loading", current.loading),
                predictions=tuple(changes.get("predictions", current.predictions)),
            )
            return self._state

    # ---- operations ----

    def _search_text(self, query: str) -> str:
        hint = (self.region_hint or "").strip()
        return f"{query} {hint}" if hint else query

    def search_predictions(self, query: str) -> List[NormalizedPrediction]:
        """
        Search the provider and return region-filtered, ranked, labeled predictions.

        Never raises for provider failures: they are logged and yield ``[]``.
        """
        query = (query or "").strip()
        with self._lock:
            self._search_seq += 1
            seq = self._search_seq

        if not query:
            state = self._update_if_current(seq, query="", loading=False, predictions=[])
            if state is not None:
                self._publish(state)
            return []

        state = self._update_if_current(seq, query=query, loading=True)
        if state is not None:
            self._publish(state)

        predictions: List[NormalizedPrediction] = []
        try:
            items = self.client.search(
                self._search_text(query),
                language=self.language,
                country_codes=self.country_codes,
            )
            predictions = normalize_predictions(parse_records(items), self.bounds)
        except GeocodingError as exc:
            logger.error("Place search failed for %r: %s", query, exc)
        finally:
            state = self._update_if_current(seq, loading=False, predictions=predictions)

        if state is None:
            logger.debug("Discarding stale results for %r (request %d superseded)", query, seq)
        else:
            self._publish(state)
        logger.debug("search_predictions: query=%r got %d predictions", query, len(predictions))
        return predictions

    def resolve_coordinates(self, prediction_id: str) -> Optional[Coordinates]:
        """Look up the coordinates of a chosen prediction. None when unavailable."""
        prediction_id = (prediction_id or "").strip()
        if not prediction_id:
            return None
        try:
            details = self.client.details(prediction_id, language=self.language)
            return extract_coordinates(details)
        except NoGeometryError as exc:
            logger.info("%s", exc)
            return None
        except GeocodingError as exc:
            logger.error("Place details lookup failed for %s: %s", prediction_id, exc)
            return None

    def reverse_lookup(self, latitude: float, longitude: float) -> Optional[NormalizedPrediction]:
        """Label a coordinate pair, e.g. the user's current position on the map."""
        try:
            data = self.client.reverse(latitude, longitude, language=self.language)
        except GeocodingError as exc:
            logger.error("Reverse geocode failed for lat=%s lon=%s: %s", latitude, longitude, exc)
            return None
        if data.get("error"):
            logger.info("Reverse geocode found nothing at lat=%s lon=%s: %s",
                        latitude, longitude, data.get("error"))
            return None
        predictions = normalize_predictions(parse_records([data]), self.bounds)
        return predictions[0] if predictions else None


_default_service: Optional[GeocodeQueryService] = None


def get_default_geocode_service() -> GeocodeQueryService:
    global _default_service
    if _default_service is None:
        _default_service = GeocodeQueryService()
    return _default_service
