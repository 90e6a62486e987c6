"""
Geocoding error taxonomy.

None of these reach the UI: GeocodeQueryService catches them at its boundary
and turns them into an empty result or ``None`` plus a log entry.
"""


class GeocodingError(Exception):
    """Base class for provider failures."""


class TransportError(GeocodingError):
    """Network unreachable, connection dropped or a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(GeocodingError):
    """The body was not JSON or did not have the expected shape."""


class NoGeometryError(GeocodingError):
    """A details lookup returned no usable coordinates."""
