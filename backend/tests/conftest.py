# tests/conftest.py

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Put backend/ on PYTHONPATH so the app package imports
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Keep the test database apart from the development one
os.environ.setdefault("DB_URL", "sqlite:///./test_taskcollab.db")
os.environ.setdefault("TESTING", "1")

from app.core.rate_limit import limiter  # noqa: E402
from app.db import Base, engine  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    """
    Recreate the schema before each test so tests don't affect each other.
    Also reset the rate limiter so limits don't accumulate between tests.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield


@pytest.fixture()
def client() -> TestClient:
    """HTTP client for the FastAPI application."""
    with TestClient(app) as c:
        yield c
