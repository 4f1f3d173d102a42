"""
Shared fixtures: isolated in-memory database, API client and per-role auth headers.

Settings are read from the environment at import time, so the environment
is prepared before anything from ``pharmatrust`` is imported.
"""
import os
import tempfile
from datetime import date, timedelta
from decimal import Decimal

os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["ALLOWED_HOSTS"] = "testserver,localhost"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="pharmatrust-uploads-")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pharmatrust.api.deps import get_db
from pharmatrust.core.rate_limiter import rate_limiter
from pharmatrust.core.security import create_access_token, get_password_hash
from pharmatrust.db.base import Base
from pharmatrust.db.session import enable_sqlite_foreign_keys
from pharmatrust.main import app
from pharmatrust.models import Customer, Medicine, Supplier, User

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="cashier", email=None, is_active=True):
        counter["n"] += 1
        user = User(
            name=f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@pharmatrust.in",
            hashed_password=get_password_hash(PASSWORD),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


def auth_headers(user: User) -> dict:
    token = create_access_token(subject=str(user.id), role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def pharmacist(make_user):
    return make_user("pharmacist")


@pytest.fixture
def cashier(make_user):
    return make_user("cashier")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def pharmacist_headers(pharmacist):
    return auth_headers(pharmacist)


@pytest.fixture
def cashier_headers(cashier):
    return auth_headers(cashier)


@pytest.fixture
def make_supplier(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            name=f"Supplier {n}",
            email=f"supplier{n}@pharmatrust.in",
            phone="9876543210",
            address={"street": "12 MG Road", "city": "Pune", "state": "Maharashtra", "pincode": "411001"},
            contact_person="Ramesh",
            gst_number=f"27AAPFU{n:04d}F1ZV",
            license_number=f"LIC-{n}",
        )
        fields.update(overrides)
        supplier = Supplier(**fields)
        db.add(supplier)
        db.commit()
        db.refresh(supplier)
        return supplier

    return _make


@pytest.fixture
def make_medicine(db, make_supplier):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        supplier_id = overrides.pop("supplier_id", None) or make_supplier().id
        today = date.today()
        fields = dict(
            name=f"Medicine {counter['n']}",
            generic_name="Paracetamol",
            category="Tablet",
            manufacturer="Cipla",
            batch_number=f"B-{counter['n']}",
            manufacturing_date=today - timedelta(days=30),
            expiry_date=today + timedelta(days=365),
            quantity=10,
            min_stock_level=5,
            cost_price=Decimal("60.00"),
            selling_price=Decimal("100.00"),
            supplier_id=supplier_id,
        )
        fields.update(overrides)
        medicine = Medicine(**fields)
        db.add(medicine)
        db.commit()
        db.refresh(medicine)
        return medicine

    return _make


@pytest.fixture
def make_customer(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = dict(
            name=f"Customer {counter['n']}",
            phone=f"98{counter['n']:08d}",
        )
        fields.update(overrides)
        customer = Customer(**fields)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


def fresh(db, model, pk):
    """Re-read a row after the API committed through another session."""
    db.expire_all()
    return db.get(model, pk)
