"""
Turn raw geocoder records into display-ready predictions.

Everything here is pure: no I/O, no shared state. The order of the pipeline
is fixed: bounds filter, relevance sort, label derivation.
"""
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Tuple

from domain.models import GeoBounds, NormalizedPrediction, RawGeocodeRecord

logger = logging.getLogger(__name__)

PRIMARY_COMPONENTS = ("house_number", "road", "park", "railway")


def _clean(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _component(record: RawGeocodeRecord, kind: str) -> str:
    return _clean(record.address.get(kind))


def parse_coordinate(value) -> Optional[float]:
    """Parse a provider lat/lon value. Returns None for missing or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(parsed) or math.isinf(parsed):
        return None
    return parsed


def record_coordinates(record: RawGeocodeRecord) -> Optional[Tuple[float, float]]:
    lat = parse_coordinate(record.latitude)
    lon = parse_coordinate(record.longitude)
    if lat is None or lon is None:
        return None
    return lat, lon


def filter_by_bounds(records: Iterable[RawGeocodeRecord], bounds: GeoBounds) -> List[RawGeocodeRecord]:
    """Keep records with parseable coordinates inside ``bounds`` (edges inclusive)."""
    kept: List[RawGeocodeRecord] = []
    for record in records:
        coords = record_coordinates(record)
        if coords is None:
            logger.debug("Dropping place %s: unusable coordinates %r,%r",
                         record.provider_id, record.latitude, record.longitude)
            continue
        if not bounds.contains(*coords):
            logger.debug("Dropping place %s: %s,%s outside region", record.provider_id, *coords)
            continue
        kept.append(record)
    return kept


def sort_by_relevance(records: Iterable[RawGeocodeRecord]) -> List[RawGeocodeRecord]:
    # sorted() is stable, so equal importance keeps provider order.
    return sorted(records, key=lambda r: r.importance, reverse=True)


def derive_primary_label(record: RawGeocodeRecord) -> str:
    """
    Produce the main line for a place.

    Rules:
    - A proper ``name`` always wins.
    - Cities and other settlements (type "city" or class "place") use the
      city, falling back to the municipality. No further fallback.
    - Otherwise join house number, road, park and railway with spaces; with
      none of those, use the text before the first comma of display_name.
    """
    name = _clean(record.name)
    if name:
        return name

    if record.place_type == "city" or record.place_class == "place":
        return _component(record, "city") or _component(record, "municipality")

    parts = [_component(record, kind) for kind in PRIMARY_COMPONENTS]
    parts = [p for p in parts if p]
    if parts:
        return " ".join(parts)
    return record.display_name.split(",", 1)[0].strip()


def derive_secondary_label(record: RawGeocodeRecord) -> str:
    """Neighbourhood/quarter, suburb, city/municipality and state, comma separated."""
    parts = [
        _component(record, "neighbourhood") or _component(record, "quarter"),
        _component(record, "suburb"),
        _component(record, "city") or _component(record, "municipality"),
        _component(record, "state"),
    ]
    return ", ".join(p for p in parts if p)


def to_prediction(record: RawGeocodeRecord) -> Optional[NormalizedPrediction]:
    """Label a single record; None when no primary label can be derived."""
    primary = derive_primary_label(record)
    if not primary:
        logger.debug("Dropping place %s: no primary label", record.provider_id)
        return None
    return NormalizedPrediction(
        id=str(record.provider_id),
        full_address=record.display_name,
        primary_label=primary,
        secondary_label=derive_secondary_label(record),
    )


def normalize_predictions(
    records: Iterable[RawGeocodeRecord],
    bounds: GeoBounds,
) -> List[NormalizedPrediction]:
    """Run the full pipeline over one provider response."""
    ranked = sort_by_relevance(filter_by_bounds(records, bounds))
    predictions: List[NormalizedPrediction] = []
    seen_ids = set()
    for record in ranked:
        prediction = to_prediction(record)
        if prediction is None:
            continue
        if prediction.id in seen_ids:
            logger.debug("Dropping duplicate place id %s", prediction.id)
            continue
        seen_ids.add(prediction.id)
        predictions.append(prediction)
    return predictions


def parse_records(items: Iterable) -> List[RawGeocodeRecord]:
    """Convert provider JSON items to records, skipping ones without an id."""
    records: List[RawGeocodeRecord] = []
    for item in items:
        if not isinstance(item, dict) or item.get("place_id") in (None, ""):
            logger.warning("Skipping geocoder item without place_id: %r", item)
            continue
        records.append(RawGeocodeRecord.from_dict(item))
    return records
