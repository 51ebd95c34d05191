"""Shared fixtures for the scraper tests."""

import pytest

from ao3_scraper import SessionHandle
from config import Settings
from tests.utils import BASE_URL, FakeSession


@pytest.fixture
def settings():
    return Settings(base_url=BASE_URL, page_delay_ms=6000, login_delay=0, retry_delay=0, output_dir=".")


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def handle(fake_session):
    return SessionHandle(session=fake_session, username="reader", base_url=BASE_URL)


@pytest.fixture
def sleeps():
    """Collects the durations passed to an injected sleep()."""
    return []
