import httpx
import pytest
from fastapi.testclient import TestClient

from catalog.api import app, get_library
from catalog.http_client import CatalogClient
from catalog.library import Library
from catalog.manager import BookManager


@pytest.fixture
def lib(tmp_path, request):
    # Each test gets its own database file
    db_file = tmp_path / f"test_{request.node.name}.db"
    lib = Library(database_url=f"sqlite:///{db_file}")
    yield lib
    lib.close()


@pytest.fixture
def api_library(lib):
    """Point the API at the per-test Library."""
    app.dependency_overrides[get_library] = lambda: lib
    try:
        yield lib
    finally:
        app.dependency_overrides.pop(get_library, None)


@pytest.fixture
def client(api_library):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_manager(api_library):
    """Factory for controllers that talk to the in-process API."""
    def factory() -> BookManager:
        transport = httpx.ASGITransport(app=app)
        return BookManager(CatalogClient(base_url="http://testserver", transport=transport))
    return factory
