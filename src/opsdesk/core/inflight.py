# src/opsdesk/core/inflight.py

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator

from ..errors import OperationInFlight

logger = logging.getLogger(__name__)


class InFlight:
    """
    Per-entity "call in progress" markers.

    Everything runs on one event loop, so a plain set is enough: a second
    operation on the same entity while the first is awaiting the API is
    rejected rather than queued. Views read is_busy() to disable controls.
    """

    def __init__(self, entity: str) -> None:
        self._entity = entity
        self._busy: set[str] = set()

    def is_busy(self, entity_id: str) -> bool:
        return str(entity_id) in self._busy

    @contextlib.contextmanager
    def claim(self, entity_id: str) -> Iterator[None]:
        key = str(entity_id)
        if key in self._busy:
            logger.debug("Rejecting concurrent call on %s %s", self._entity, key)
            raise OperationInFlight(self._entity, key)
        self._busy.add(key)
        try:
            yield
        finally:
            self._busy.discard(key)
