"""Structured logging helpers for the SkillBridge service."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges the component field with per-call extras."""

    def process(self, msg, kwargs):
        """Merge adapter extra with call extra; call extra wins."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Get a logger that stamps every record with a component field.

    Args:
        name: Logger name (typically __name__)
        component: Optional component identifier (auth, marketplace, api, ...)

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="auth")
        >>> logger.info("User signed in", extra={"event": "auth.signin.succeeded"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
