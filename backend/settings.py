import os
from typing import Optional, Tuple

# Basic settings helper to read environment configuration.

DEFAULT_REGION_BOUNDS = "12.5,0.6,-73.4,-59.7"


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    return float(val)


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


def _as_optional_float(val: str | None) -> Optional[float]:
    if val is None or not val.strip():
        return None
    return float(val)


def _as_bounds(val: str | None) -> Tuple[float, float, float, float]:
    """Parse "north,south,west,east" into a 4-tuple of floats."""
    raw = val if val and val.strip() else DEFAULT_REGION_BOUNDS
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 4:
        raise ValueError(f"GEOCODER_REGION_BOUNDS needs north,south,west,east: {raw!r}")
    north, south, west, east = (float(p) for p in parts)
    return north, south, west, east


class Settings:
    def __init__(self) -> None:
        self.GEOCODER_BASE_URL: str = os.getenv(
            "GEOCODER_BASE_URL", "https://nominatim.openstreetmap.org"
        ).rstrip("/")
        self.GEOCODER_USER_AGENT: Optional[str] = os.getenv("GEOCODER_USER_AGENT")
        self.GEOCODER_REFERER: Optional[str] = os.getenv("GEOCODER_REFERER")
        self.GEOCODER_LANGUAGE: str = os.getenv("GEOCODER_LANGUAGE", "es")
        self.GEOCODER_COUNTRY_CODES: str = os.getenv("GEOCODER_COUNTRY_CODES", "ve")
        self.GEOCODER_REGION_HINT: str = os.getenv("GEOCODER_REGION_HINT", "Venezuela")
        self.GEOCODER_REGION_BOUNDS: Tuple[float, float, float, float] = _as_bounds(
            os.getenv("GEOCODER_REGION_BOUNDS")
        )
        self.GEOCODER_MIN_INTERVAL: float = _as_float(os.getenv("GEOCODER_MIN_INTERVAL"), 1.0)
        self.GEOCODER_TIMEOUT: Optional[float] = _as_optional_float(os.getenv("GEOCODER_TIMEOUT"))
        self.SEARCH_DEBOUNCE_MS: int = _as_int(os.getenv("SEARCH_DEBOUNCE_MS"), 300)
        self.SEARCH_MIN_QUERY_LENGTH: int = _as_int(os.getenv("SEARCH_MIN_QUERY_LENGTH"), 2)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
