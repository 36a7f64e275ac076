"""In-memory recordset storage backing the built-in matcher."""

import logging
from typing import Dict, Iterable, List

from http_vcr.core.format import Exchange

logger = logging.getLogger(__name__)


class UnknownRecordsetError(KeyError):
    """Raised when appending to a recordset that was never initialised."""

    def __init__(self, recordset: str) -> None:
        super().__init__(recordset)
        self.recordset = recordset

    def __str__(self) -> str:
        return (
            f"Unknown recordset '{self.recordset}'. "
            "Call set_requests() to initialise it before recording."
        )


class RecordsetStore:
    """Maps recordset names to ordered lists of exchanges.

    Insertion order is preserved and is the tie-break for matching.
    The store does no locking of its own; callers serialise access.
    """

    def __init__(self) -> None:
        self._recordsets: Dict[str, List[Exchange]] = {}

    def get(self, name: str) -> List[Exchange]:
        """Return the exchanges stored under ``name``.

        Returns a copy; unknown names yield an empty list rather than an error.
        """
        return list(self._recordsets.get(name, ()))

    def set(self, name: str, exchanges: Iterable[Exchange]) -> None:
        """Replace the whole recordset ``name``."""
        self._recordsets[name] = list(exchanges)
        logger.debug(f"Recordset '{name}' set with {len(self._recordsets[name])} exchanges")

    def append(self, name: str, exchange: Exchange) -> None:
        """Append an exchange to an existing recordset.

        Raises:
            UnknownRecordsetError: If ``name`` was never set
        """
        if name not in self._recordsets:
            raise UnknownRecordsetError(name)
        self._recordsets[name].append(exchange)

    def names(self) -> List[str]:
        return list(self._recordsets)

    def __contains__(self, name: object) -> bool:
        return name in self._recordsets

    def __len__(self) -> int:
        return len(self._recordsets)
