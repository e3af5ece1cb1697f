import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from recipe_api.auth.jwt import TokenIssuer, get_token_issuer
from recipe_api.main import app
from recipe_api.settings import settings
from recipe_api.utils.db import init_db

TEST_ACCESS_SECRET = "test-access-secret-for-unit-tests"
TEST_REFRESH_SECRET = "test-refresh-secret-for-unit-tests"


@pytest.fixture
def test_db(tmp_path):
    """Point the store at a fresh SQLite file with the schema applied."""
    db_path = str(tmp_path / "test.db")
    with patch.object(settings, "database_path", db_path):
        # own thread so the event loop used by async tests is left alone
        with ThreadPoolExecutor(max_workers=1) as executor:
            executor.submit(asyncio.run, init_db()).result()
        yield db_path


@pytest.fixture
def issuer():
    return TokenIssuer(TEST_ACCESS_SECRET, TEST_REFRESH_SECRET)


@pytest.fixture
def client(test_db, issuer):
    app.dependency_overrides[get_token_issuer] = lambda: issuer
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def access_secret():
    return TEST_ACCESS_SECRET
