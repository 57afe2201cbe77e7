"""In-process row-change feed.

Subscribers register a callback for a table, optionally filtered by column
equality (``{"user_id": "..."}``). Events are published after the database
transaction that produced them commits.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from skillbridge.logging import get_logger

logger = get_logger(__name__, component="realtime")


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class ChangeEvent:
    """A committed row change.

    ``new`` is the row after the change (None for DELETE); ``old`` holds the
    full row for DELETE and only the changed columns' previous values for
    UPDATE.
    """

    table: str
    type: ChangeType
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None

    @property
    def record(self) -> Dict[str, Any]:
        return self.new if self.new is not None else (self.old or {})


ChangeCallback = Callable[[ChangeEvent], None]


@dataclass
class Subscription:
    table: str
    callback: ChangeCallback
    filters: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid4()))
    feed: Optional["ChangeFeed"] = field(default=None, repr=False)

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        record = event.record
        return all(record.get(column) == value for column, value in self.filters.items())

    def unsubscribe(self) -> None:
        if self.feed is not None:
            self.feed.unsubscribe(self)


class ChangeFeed:
    """Fan-out of row-change events to subscribers.

    Thread-safe; callbacks run on the publishing thread. A failing callback is
    logged and does not prevent delivery to the others.
    """

    def __init__(self):
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Subscription:
        subscription = Subscription(table=table, callback=callback, filters=dict(filters or {}), feed=self)
        with self._lock:
            self._subscriptions[subscription.id] = subscription
        logger.debug(
            f"Subscribed to {table} changes",
            extra={"event": "realtime.subscribed", "table": table, "subscription_id": subscription.id},
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            removed = self._subscriptions.pop(subscription.id, None)
        if removed is not None:
            logger.debug(
                f"Unsubscribed from {subscription.table} changes",
                extra={"event": "realtime.unsubscribed", "subscription_id": subscription.id},
            )

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to matching subscribers.

        Returns:
            Number of callbacks that ran without raising
        """
        with self._lock:
            targets: List[Subscription] = [s for s in self._subscriptions.values() if s.matches(event)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.callback(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Change subscriber failed for {event.table} {event.type.value}: {e}",
                    exc_info=True,
                    extra={
                        "event": "realtime.callback.failed",
                        "subscription_id": subscription.id,
                        "error_type": type(e).__name__,
                    },
                )
        return delivered
