"""
Core domain models for place search.
These are framework-agnostic and shared by the geocoding client, the
prediction pipeline and the API layer.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class GeoBounds:
    """
    Rectangular region used to restrict search candidates.

    Edges are inclusive. West/east follow the region's local convention;
    a box crossing the antimeridian is not supported.
    """
    north: float
    south: float
    west: float
    east: float

    def __post_init__(self) -> None:
        for name in ("north", "south", "west", "east"):
            if math.isnan(getattr(self, name)):
                raise ValueError(f"GeoBounds.{name} must be a number")
        if self.south > self.north:
            raise ValueError(f"GeoBounds south ({self.south}) is above north ({self.north})")
        if self.west > self.east:
            raise ValueError(f"GeoBounds west ({self.west}) is east of east ({self.east})")

    def contains(self, lat: float, lon: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lon <= self.east

    @classmethod
    def from_tuple(cls, values) -> "GeoBounds":
        north, south, west, east = values
        return cls(north=north, south=south, west=west, east=east)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass
class RawGeocodeRecord:
    """One unprocessed place candidate as reported by the provider."""
    provider_id: Union[int, str]
    display_name: str = ""
    # Providers send lat/lon as strings; they stay raw until the bounds filter.
    latitude: Any = None
    longitude: Any = None
    importance: float = 0.0
    place_type: Optional[str] = None
    place_class: Optional[str] = None
    address: Dict[str, str] = field(default_factory=dict)
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawGeocodeRecord":
        """Build a record from a Nominatim JSON object.

        Raises KeyError when ``place_id`` is missing.
        """
        try:
            importance = float(data.get("importance") or 0.0)
        except (TypeError, ValueError, OverflowError):
            importance = 0.0
        if math.isnan(importance):
            importance = 0.0
        address = data.get("address")
        if not isinstance(address, dict):
            address = {}
        return cls(
            provider_id=data["place_id"],
            display_name=str(data.get("display_name") or ""),
            latitude=data.get("lat"),
            longitude=data.get("lon"),
            importance=importance,
            place_type=data.get("type"),
            place_class=data.get("class") or data.get("category"),
            address={str(k): str(v) for k, v in address.items() if v is not None},
            name=data.get("name"),
        )


@dataclass(frozen=True)
class NormalizedPrediction:
    """A display-ready address candidate (main line + secondary line)."""
    id: str
    full_address: str
    primary_label: str
    secondary_label: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "full_address": self.full_address,
            "primary_label": self.primary_label,
            "secondary_label": self.secondary_label,
        }


@dataclass(frozen=True)
class SearchState:
    """Snapshot of the search service published to observers."""
    query: str = ""
    loading: bool = False
    predictions: Tuple[NormalizedPrediction, ...] = ()
