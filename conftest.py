import os
import pytest
from fastapi.testclient import TestClient

from bookvault.api import create_app
from bookvault.library import Library


@pytest.fixture
def db_file(tmp_path, request):
    # Unique database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def lib(db_file):
    lib = Library(db_file=db_file)
    yield lib
    lib.close()
    if os.path.exists(db_file):
        os.remove(db_file)


@pytest.fixture
def client(lib):
    # The API gets its own isolated Library instead of a global one
    with TestClient(create_app(lib)) as test_client:
        yield test_client
