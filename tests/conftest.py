import sys
import os
import pytest

# make sure the repository root is on sys.path for test collection
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Use a dedicated test sqlite file for consistency across the TestClient and app imports
test_db_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '.test.db'))
os.environ.setdefault('DATABASE_URL', f'sqlite:///{test_db_path}')
os.environ.setdefault('SECRET_KEY', 'test-secret')

from fastapi.testclient import TestClient

from backend.qrtrack.db import Base, get_engine
from backend.qrtrack import models  # Ensure models are imported so table metadata is registered
from helpers import signup


@pytest.fixture(autouse=True)
def prepare_db():
    # Fresh tables for every test
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session", autouse=True)
def remove_test_db():
    yield
    get_engine().dispose()
    if os.path.exists(test_db_path):
        os.remove(test_db_path)


@pytest.fixture
def client():
    from backend.qrtrack.main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    return signup(client)
