"""Row-change notifications for live views."""

from .feed import ChangeCallback, ChangeEvent, ChangeFeed, ChangeType, Subscription
from .listeners import bind_change_feed, watch_models
from .tracker import SUBMISSIONS_TABLE, SubmissionTracker

__all__ = [
    "ChangeFeed",
    "ChangeEvent",
    "ChangeType",
    "ChangeCallback",
    "Subscription",
    "bind_change_feed",
    "watch_models",
    "SubmissionTracker",
    "SUBMISSIONS_TABLE",
]
