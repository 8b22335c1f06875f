import pytest
from fastapi.testclient import TestClient

from api import create_app
from library import Library
from ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture
def lib():
    # Fresh seeded store for every test
    return Library()


@pytest.fixture
def client(lib):
    with TestClient(create_app(lib)) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # --output sets an env var; keep it from leaking between tests
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")
