"""Shared fixtures for compliance tests."""

from datetime import datetime, timezone

import pytest

from sedori.db.session import create_db_engine, init_db, make_session_factory


@pytest.fixture()
def now() -> datetime:
    return datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def session_factory():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    try:
        yield make_session_factory(engine)
    finally:
        engine.dispose()
