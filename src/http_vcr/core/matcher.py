"""Request matchers for replay: find recorded exchanges for incoming requests."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from http_vcr.core.format import Exchange, RecordedRequest
from http_vcr.core.store import RecordsetStore

logger = logging.getLogger(__name__)


class Matcher(ABC):
    """Abstract base class for recordset matchers.

    A matcher both answers lookups during replay and stores exchanges during
    recording. The engine talks to exactly one matcher at a time: the built-in
    RecordsetMatcher, or an external one registered in its place.
    """

    @abstractmethod
    def find_request(
        self, recordset: str, request: RecordedRequest
    ) -> Optional[Exchange]:
        """Find the recorded exchange answering ``request``.

        Args:
            recordset: Name of the recordset to search
            request: Lookup key built from the incoming request

        Returns:
            The matching Exchange, or None if nothing matches
        """
        pass

    @abstractmethod
    def add_request(self, recordset: str, exchange: Exchange) -> None:
        """Store a newly recorded exchange at the end of ``recordset``."""
        pass

    @abstractmethod
    def get_requests(self, recordset: str) -> List[Exchange]:
        """Return every exchange of ``recordset`` in insertion order."""
        pass

    @abstractmethod
    def set_requests(self, recordset: str, exchanges: Iterable[Exchange]) -> None:
        """Replace ``recordset`` with ``exchanges``."""
        pass


class RecordsetMatcher(Matcher):
    """Built-in exact matcher over a RecordsetStore.

    An exchange matches when the method (case-sensitive), the full URL
    (query string included, no normalisation) and the raw body bytes are all
    equal. A missing body (None) never matches an empty body (b"").
    The first match in insertion order wins.
    """

    def __init__(self, store: Optional[RecordsetStore] = None) -> None:
        self.store = store if store is not None else RecordsetStore()

    def find_request(
        self, recordset: str, request: RecordedRequest
    ) -> Optional[Exchange]:
        logger.debug(f"find_request internal for recordset '{recordset}'")
        try:
            matches = self.find_all_matches(recordset, request)
        except Exception as e:
            logger.error(f"Matcher failed on recordset '{recordset}': {e}", exc_info=True)
            return None
        return matches[0] if matches else None

    def find_all_matches(
        self, recordset: str, request: RecordedRequest
    ) -> List[Exchange]:
        """Return every exchange matching ``request``, in insertion order."""
        return [
            exchange
            for exchange in self.store.get(recordset)
            if self.matches(exchange.request, request)
        ]

    @staticmethod
    def matches(recorded: RecordedRequest, request: RecordedRequest) -> bool:
        return (
            recorded.method == request.method
            and recorded.url == request.url
            and recorded.raw_body == request.raw_body
        )

    def add_request(self, recordset: str, exchange: Exchange) -> None:
        logger.debug(f"add_request internal for recordset '{recordset}'")
        self.store.append(recordset, exchange)

    def get_requests(self, recordset: str) -> List[Exchange]:
        logger.debug(f"get_requests internal for recordset '{recordset}'")
        return self.store.get(recordset)

    def set_requests(self, recordset: str, exchanges: Iterable[Exchange]) -> None:
        logger.debug(f"set_requests internal for recordset '{recordset}'")
        self.store.set(recordset, exchanges)
