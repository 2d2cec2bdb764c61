"""Per-label routing of decoded messages to storage."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence

from .decoder import render_message
from .errors import DuplicateMessageError, StorageError
from .models import DecodedMessage
from .storage import StoragePort

logger = logging.getLogger(__name__)


class RouteOutcome(str, Enum):
    SKIPPED = "skipped"
    INSERTED_ONCE = "inserted-once"
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    PERSISTENCE_ERROR = "persistence-error"
    UNPERSISTED = "unpersisted"


_TAGS = {
    RouteOutcome.SKIPPED: "[SKIP]",
    RouteOutcome.INSERTED_ONCE: "[ONCE]",
    RouteOutcome.INSERTED: "[INSERT]",
    RouteOutcome.DUPLICATE: "[DUP]",
    RouteOutcome.PERSISTENCE_ERROR: "[ERROR]",
    RouteOutcome.UNPERSISTED: "[NODB]",
}


class OutcomeCounter:
    """Thread-safe tally of routing outcomes."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def add(self, outcome: RouteOutcome) -> None:
        with self._lock:
            self._counts[outcome.value] += 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            counts = dict(self._counts)
        return {outcome.value: counts.get(outcome.value, 0) for outcome in RouteOutcome}


class MessageRouter:
    """Decides, per label, whether a message is skipped, stored once or always stored."""

    def __init__(
        self,
        storage: Optional[StoragePort],
        skip_labels: Iterable[str] = (),
        once_labels: Iterable[str] = (),
        channels: Sequence[str] = (),
        counter: Optional[OutcomeCounter] = None,
    ) -> None:
        self._storage = storage
        self._skip_labels = frozenset(skip_labels)
        self._once_labels = frozenset(once_labels)
        self._channels = list(channels)
        self.counter = counter or OutcomeCounter()

    @property
    def persistence_enabled(self) -> bool:
        return self._storage is not None

    def __call__(self, message: DecodedMessage) -> None:
        self.handle(message)

    def handle(self, message: DecodedMessage) -> RouteOutcome:
        """Route one message and log the outcome."""

        self._enrich(message)
        outcome = self._route(message)
        self.counter.add(outcome)
        if outcome is not RouteOutcome.PERSISTENCE_ERROR:
            logger.info("%s\n%s", _TAGS[outcome], render_message(message))
        return outcome

    def _enrich(self, message: DecodedMessage) -> None:
        # Channels are numbered from 1 in the frequency table.
        index = message.channel - 1
        if message.frequency is None and 0 <= index < len(self._channels):
            message.frequency = self._channels[index]

    def _route(self, message: DecodedMessage) -> RouteOutcome:
        if message.label in self._skip_labels:
            return RouteOutcome.SKIPPED
        if self._storage is None:
            return RouteOutcome.UNPERSISTED

        try:
            if message.label in self._once_labels:
                inserted = self._storage.insert_if_absent(message)
                return RouteOutcome.INSERTED_ONCE if inserted > 0 else RouteOutcome.SKIPPED
            self._storage.insert(message)
            return RouteOutcome.INSERTED
        except DuplicateMessageError:
            return RouteOutcome.DUPLICATE
        except StorageError as exc:
            logger.error(
                "Failed to insert message into database: %s\n%s", exc, render_message(message)
            )
            return RouteOutcome.PERSISTENCE_ERROR
