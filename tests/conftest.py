"""Shared fixtures: an in-memory database, a frozen clock and configs."""

import pytest

from skillbridge.config.models import AppConfig
from skillbridge.persistence import close_database, init_database
from tests.helpers import FrozenClock


@pytest.fixture
def database():
    init_database("sqlite://")
    yield
    close_database()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def open_config():
    """Config where sign-up signs the member in straight away."""
    return AppConfig(auth={"require_email_confirmation": False})
