"""Context propagation for structured logging.

Fields pushed here (request_id, user_id, job_id, submission_id, ...) are
injected into every log record emitted inside the scope. Backed by
contextvars, so each request handled by the API keeps its own context.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional


LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the logging context.

    Args:
        **kwargs: Key-value pairs to add to the logging context

    Returns:
        Token for pop_log_context()

    Example:
        >>> token = push_log_context(request_id="req-1", user_id="u-42")
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the logging context saved by push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Clear all logging context fields (used by tests)."""
    LogContextVar.set({})


class log_context:
    """Context manager for scoped logging context.

    Example:
        >>> with log_context(user_id="u-42", job_id="j-7"):
        ...     logger.info("Submission received")
    """

    def __init__(self, **kwargs):
        self.kwargs = {key: value for key, value in kwargs.items() if value is not None}
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
