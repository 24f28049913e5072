from __future__ import annotations

import pytest

from core.config import ConfigLoader
from core.database import open_database, set_database


@pytest.fixture
def db():
    conn = open_database(":memory:", seed=True)
    set_database(conn)
    yield conn
    set_database(None)
    conn.close()


@pytest.fixture(autouse=True)
def _fresh_config():
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()
