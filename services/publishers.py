"""Registry of the writers whose records are read each round."""

import logging
import threading
from typing import Iterable, List

from models import Interaction
from services.normalizer import ADDRESS_RE

logger = logging.getLogger(__name__)


class PublisherRegistry:
    """Known writer addresses, kept lower-cased and in registration order.

    New writers are discovered from the ``from_user`` of decoded interactions
    and take part in the next fetch round.
    """

    def __init__(self, initial: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._writers: dict[str, None] = {}
        for address in initial:
            self.add(address)

    def add(self, address: str) -> bool:
        if not address or not ADDRESS_RE.fullmatch(address):
            logger.warning(f"Ignoring invalid publisher address: {address!r}")
            return False
        key = address.lower()
        with self._lock:
            if key in self._writers:
                return False
            self._writers[key] = None
        logger.info(f"Registered publisher {key}")
        return True

    def discover(self, interactions: Iterable[Interaction]) -> int:
        """Register every interaction author not yet known; returns how many were new."""
        return sum(1 for address in {i.user_key for i in interactions} if self.add(address))

    def all(self) -> List[str]:
        with self._lock:
            return list(self._writers)

    def __contains__(self, address: str) -> bool:
        return address.lower() in self._writers

    def __len__(self) -> int:
        return len(self._writers)
