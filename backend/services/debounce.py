"""
Typing debounce for the search screen.

Only the latest query after a pause of ``delay_sec`` reaches the service, so
at most one search per pause is sent no matter how fast the user types.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from services.geocode_query import GeocodeQueryService
from settings import settings

logger = logging.getLogger(__name__)


class SearchDebouncer:
    def __init__(
        self,
        service: GeocodeQueryService,
        delay_sec: Optional[float] = None,
        min_query_length: Optional[int] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.service = service
        self.delay_sec = settings.SEARCH_DEBOUNCE_MS / 1000.0 if delay_sec is None else delay_sec
        self.min_query_length = (
            settings.SEARCH_MIN_QUERY_LENGTH if min_query_length is None else min_query_length
        )
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending_query: Optional[str] = None
        self._generation = 0

    @property
    def pending_query(self) -> Optional[str]:
        return self._pending_query

    def update(self, query: str) -> None:
        """Record the latest text in the search box."""
        query = query or ""
        with self._lock:
            self._cancel_locked()
            if len(query.strip()) < self.min_query_length:
                short = True
            else:
                short = False
                self._pending_query = query
                self._timer = self._timer_factory(
                    self.delay_sec, self._fire, args=(self._generation,)
                )
                self._timer.daemon = True
                self._timer.start()
        if short:
            # Too short to search: clear the list right away.
            self.service.search_predictions("")

    def flush(self) -> None:
        """Send the pending query now instead of waiting for the timer."""
        with self._lock:
            query = self._pending_query
            self._cancel_locked()
        if query is not None:
            self.service.search_predictions(query)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending_query = None
        self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            query = self._pending_query
            self._timer = None
            self._pending_query = None
        if query is None:
            return
        logger.debug("Debounced search for %r", query)
        self.service.search_predictions(query)
