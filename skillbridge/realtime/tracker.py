"""Live view of one member's submissions."""

from typing import Callable, List, Optional

from skillbridge.domain.models import Submission
from skillbridge.logging import get_logger

from .feed import ChangeEvent, ChangeFeed, Subscription

logger = get_logger(__name__, component="realtime")

SUBMISSIONS_TABLE = "job_submissions"


class SubmissionTracker:
    """Keeps a member's submission list current.

    Any insert, update or delete of the member's rows triggers a full
    re-fetch through ``fetch`` rather than patching the cached list.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        user_id: str,
        fetch: Callable[[], List[Submission]],
        on_change: Optional[Callable[[List[Submission]], None]] = None,
    ):
        self.feed = feed
        self.user_id = user_id
        self.fetch = fetch
        self.on_change = on_change
        self.submissions: List[Submission] = []
        self._subscription: Optional[Subscription] = None

    def start(self) -> List[Submission]:
        self.submissions = self.fetch()
        self._subscription = self.feed.subscribe(
            SUBMISSIONS_TABLE, self._handle_change, filters={"user_id": self.user_id}
        )
        return self.submissions

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _handle_change(self, change: ChangeEvent) -> None:
        logger.debug(
            f"Submission {change.type.value.lower()} for user, refreshing",
            extra={"event": "realtime.submissions.refresh", "user_id": self.user_id},
        )
        self.submissions = self.fetch()
        if self.on_change is not None:
            self.on_change(self.submissions)

    def __enter__(self) -> "SubmissionTracker":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
