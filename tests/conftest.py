import mongomock
import pytest
from fastapi.testclient import TestClient

from catalog import Catalog
from orders import OrderStore
from schemas import CustomerInfo, ProductIn

ADMIN_EMAIL = "owner@shop.test"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.delenv("TELEGRAM_CHAT_ID", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("ADMIN_EMAILS", f"{ADMIN_EMAIL}, Staff@Shop.test")


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient(tz_aware=True)["storefront_test"]


@pytest.fixture
def catalog(mongo_db):
    return Catalog(mongo_db)


@pytest.fixture
def store(mongo_db):
    return OrderStore(mongo_db)


@pytest.fixture
def customer():
    return CustomerInfo(name="Dara Sok", email="dara@example.com", phone="012345678", address="12 Riverside, Phnom Penh")


@pytest.fixture
def add_product(catalog):
    def _add(name="Rose Serum", price=10.0, cost_price=4.0, stock=3, category="serum"):
        return catalog.create_product(ProductIn(
            name=name,
            description=f"{name} for daily use",
            price=price,
            cost_price=cost_price,
            stock=stock,
            category=category,
            image_url=f"https://img.test/{name.replace(' ', '-').lower()}.jpg",
        ))
    return _add


@pytest.fixture
def client(mongo_db):
    import main

    main.app.dependency_overrides[main.get_database] = lambda: mongo_db
    main.read_cache.clear()
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
    main.read_cache.clear()


@pytest.fixture
def admin_headers():
    return {"X-User-Email": ADMIN_EMAIL}
