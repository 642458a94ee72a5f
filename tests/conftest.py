"""Shared test fixtures and helpers."""

import os

# Settings are read at import time, so they must be in place before cleanpro is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OTP_STORE_BACKEND"] = "memory"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("R2_PUBLIC_URL", None)

from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from cleanpro import email_service, otp_store, storage  # noqa: E402
from cleanpro.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from cleanpro.main import app  # noqa: E402
from cleanpro.models import Admin, Customer, Product, Service  # noqa: E402
from cleanpro.security_utils import create_admin_token, create_customer_token, hash_password  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

CUSTOMER_PASSWORD = "secret123"
ADMIN_PASSWORD = "Str0ng!Passw0rd"


class FakeRedis:
    """In-memory stand-in for the few redis commands the app uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def ping(self):
        return True

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = str(value)
        if ex:
            self.ttls[key] = int(ex)
        return True

    def setex(self, key, ttl, value):
        return self.set(key, value, ex=ttl)

    def ttl(self, key):
        if key not in self.data:
            return -2
        return self.ttls.get(key, -1)

    def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    def exists(self, key):
        return int(key in self.data)


class FakeR2Client:
    """Records put/delete calls instead of talking to Cloudflare R2."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def put_object(self, Bucket, Key, Body, ContentType, **kwargs):
        self.objects[Key] = Body
        return {"ETag": "fake"}

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)
        self.objects.pop(Key, None)
        return {}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://r2.test/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def memory_otp_store():
    store = otp_store.MemoryOTPStore(max_attempts=5)
    otp_store._store = store
    yield store
    otp_store._store = None


@pytest.fixture(autouse=True)
def fake_r2(monkeypatch):
    fake = FakeR2Client()
    monkeypatch.setattr(storage, "get_r2_client", lambda: fake)
    return fake


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing emails; each entry is a dict of the send arguments."""
    outbox: list[dict] = []

    async def fake_invitation(to, name, otp, role):
        outbox.append({"kind": "admin_invitation", "to": to, "name": name, "otp": otp, "role": role})
        return {"id": "test"}

    async def fake_reset(to, name, reset_link):
        outbox.append({"kind": "password_reset", "to": to, "name": name, "reset_link": reset_link})
        return {"id": "test"}

    monkeypatch.setattr(email_service, "send_admin_invitation_email", fake_invitation)
    monkeypatch.setattr(email_service, "send_password_reset_email", fake_reset)
    return outbox


# ============================================================================
# FACTORIES
# ============================================================================


def make_customer(
    db,
    email: str = "jane@example.com",
    full_name: str = "Jane Doe",
    password: str = CUSTOMER_PASSWORD,
    phone: Optional[str] = "5551234567",
    is_active: bool = True,
) -> Customer:
    customer = Customer(
        full_name=full_name,
        email=email,
        password_hash=hash_password(password),
        phone=phone,
        is_active=is_active,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def make_admin(
    db,
    email: str = "boss@cleanpro.example",
    name: str = "Main Admin",
    role: str = "main_admin",
    password: Optional[str] = ADMIN_PASSWORD,
    first_login: bool = False,
) -> Admin:
    admin = Admin(
        name=name,
        email=email,
        role=role,
        password_hash=hash_password(password) if password else None,
        first_login=first_login,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def make_service(
    db,
    name: str = "Deep Cleaning",
    duration: int = 180,
    category: Optional[str] = "residential",
    is_available: bool = True,
) -> Service:
    service = Service(name=name, duration=duration, category=category, is_available=is_available)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_product(
    db,
    name: str = "Microfiber Cloth",
    price: float = 4.5,
    stock_quantity: int = 10,
    category: Optional[str] = "supplies",
    is_available: bool = True,
) -> Product:
    product = Product(
        name=name, price=price, stock_quantity=stock_quantity, category=category, is_available=is_available
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def auth_header(account) -> dict:
    """Bearer header for a customer or admin row."""
    token = create_admin_token(account) if isinstance(account, Admin) else create_customer_token(account)
    return {"Authorization": f"Bearer {token}"}


def booking_payload(customer_id=None, service_id=None, **overrides) -> dict:
    """Booking form body with a complete address and a far-future date."""
    payload = {
        "Customer_ID": customer_id,
        "Service_ID": service_id,
        "Date": "2099-01-01",
        "Address_Street": "1 Main",
        "Address_City": "X",
        "Address_State": "Y",
        "Address_Postal_Code": "0001",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}
