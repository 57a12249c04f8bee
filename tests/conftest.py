"""
Shared test fixtures — SQLite test database, test client, engine builders.
"""

import os
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Point the app at the test database before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SEED_CATALOG"] = "false"

from contractor_quotes.database import Base, get_db
from contractor_quotes.main import app
from contractor_quotes.pricing.types import (
    Addon, AddonSelection, CalculationType, Measurement, Product, Variation,
)


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(client):
    """Starter catalog loaded through the API; returns products by name."""
    response = client.get("/api/products/seed")
    assert response.status_code == 200
    listing = client.get("/api/products/").json()
    return {p["name"]: p for p in listing}


# --- Engine record builders ---

def D(value) -> Decimal:
    return Decimal(str(value))


def make_product(**overrides) -> Product:
    fields = {"id": "p1", "name": "Test product", "unit_price": D("3")}
    fields.update(overrides)
    return Product(**fields)


def make_addon(addon_id="a1", price="1", mode=CalculationType.TOTAL, quantity="1", **overrides) -> Addon:
    return Addon(
        id=addon_id,
        name=overrides.pop("name", f"Add-on {addon_id}"),
        price_value=D(price),
        calculation_type=mode,
        selection=AddonSelection.from_quantity(D(quantity)),
        **overrides,
    )


def area(value, depth=None) -> Measurement:
    return Measurement(value=D(value), depth=None if depth is None else D(depth))


def fence_height(height="6", unit="ft", affects_area=True) -> Variation:
    return Variation(
        id="v-height",
        name=f"{height} {unit}",
        height_value=D(height),
        unit_of_measurement=unit,
        affects_area_calculation=affects_area,
    )
