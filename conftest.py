import os
from datetime import datetime, timezone

# keep the app's import-time create_all away from any real database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from promo_engine.main import app
from promo_engine.database import get_db, Base
from promo_engine.dependencies import get_now

# Load environment so TEST_DATABASE_URL can be read from .env
load_dotenv()

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")

# FIXED_NOW is the clock every API test runs at
FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

if TEST_DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Override the app's DB dependency to use the test engine/session
def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_now] = lambda: FIXED_NOW


@pytest.fixture
def client():
    """Fresh schema and an empty definition cache for each API test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.state.definition_cache.invalidate()
    yield TestClient(app)
    Base.metadata.drop_all(bind=engine)
