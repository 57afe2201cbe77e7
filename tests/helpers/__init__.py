"""Test helper utilities for SkillBridge tests."""

from .factories import (
    FROZEN_NOW,
    TEST_PASSWORD,
    FrozenClock,
    create_category,
    create_job,
    create_member,
    get_profile,
)

__all__ = [
    "FROZEN_NOW",
    "TEST_PASSWORD",
    "FrozenClock",
    "create_member",
    "create_category",
    "create_job",
    "get_profile",
]
