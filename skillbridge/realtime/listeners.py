"""SQLAlchemy event wiring that turns ORM writes into change events.

Mapper events collect pending changes on the session; they are published
when the session commits and discarded when it rolls back. Bulk
``update()``/``delete()`` statements bypass mapper events and are not
reported.
"""

from typing import Any, Dict, Iterable, Type

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, object_session, sessionmaker

from skillbridge.persistence.schema import SubmissionModel

from .feed import ChangeEvent, ChangeFeed, ChangeType

PENDING_KEY = "realtime_pending_changes"

WATCHED_MODELS = (SubmissionModel,)


def _row(target) -> Dict[str, Any]:
    mapper = inspect(target).mapper
    return {attr.key: getattr(target, attr.key) for attr in mapper.column_attrs}


def _previous_values(target) -> Dict[str, Any]:
    state = inspect(target)
    old = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.deleted:
            old[attr.key] = history.deleted[0]
    return old


def _queue(target, change_event: ChangeEvent) -> None:
    session = object_session(target)
    if session is not None:
        session.info.setdefault(PENDING_KEY, []).append(change_event)


def _after_insert(mapper, connection, target) -> None:
    _queue(target, ChangeEvent(table=mapper.local_table.name, type=ChangeType.INSERT, new=_row(target)))


def _after_update(mapper, connection, target) -> None:
    old = _previous_values(target)
    if not old:
        return
    _queue(
        target,
        ChangeEvent(table=mapper.local_table.name, type=ChangeType.UPDATE, new=_row(target), old=old),
    )


def _after_delete(mapper, connection, target) -> None:
    _queue(target, ChangeEvent(table=mapper.local_table.name, type=ChangeType.DELETE, old=_row(target)))


_MAPPER_HOOKS = (
    ("after_insert", _after_insert),
    ("after_update", _after_update),
    ("after_delete", _after_delete),
)


def watch_models(models: Iterable[Type] = WATCHED_MODELS) -> None:
    """Register mapper hooks on the given ORM classes (idempotent)."""
    for model in models:
        for identifier, hook in _MAPPER_HOOKS:
            if not event.contains(model, identifier, hook):
                event.listen(model, identifier, hook)


def bind_change_feed(feed: ChangeFeed, session_factory: sessionmaker) -> None:
    """Publish committed changes from sessions created by ``session_factory``."""
    watch_models()

    def publish_pending(session: Session) -> None:
        for change_event in session.info.pop(PENDING_KEY, []):
            feed.publish(change_event)

    def discard_pending(session: Session) -> None:
        session.info.pop(PENDING_KEY, None)

    event.listen(session_factory, "after_commit", publish_pending)
    event.listen(session_factory, "after_rollback", discard_pending)
