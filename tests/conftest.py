import os
import tempfile

import pytest

_tmp = tempfile.mkdtemp(prefix="autohub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["MEDIA_ROOT"] = os.path.join(_tmp, "public")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256"

from fastapi.testclient import TestClient  # noqa: E402

from autohub.db import Base, engine, SessionLocal  # noqa: E402
from autohub.main import app  # noqa: E402
from autohub.models import Brand, Category, Product  # noqa: E402
from autohub.storage import LocalStorage, get_storage  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "media"), "/")


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def token(client):
    res = client.post("/api/auth", json={"username": "admin", "password": "admin123"})
    assert res.status_code == 200
    return res.json()["token"]


@pytest.fixture
def admin(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def brand(db):
    b = Brand(name="Toyota", thumbnail="/brands/toyota.png")
    db.add(b)
    db.commit()
    return b


@pytest.fixture
def category(db):
    c = Category(name="Sedan", type="product")
    db.add(c)
    db.commit()
    return c


def png(name="photo.png", data=b"\x89PNG fake image bytes"):
    return (name, data, "image/png")


def add_product(db, category, brand, **kw):
    values = dict(
        title="Car", model="M1", year=2015, unit_price=1000, weight=1000,
        thumbnail="/products/thumb.png", images=["/products/a.png"],
        category_id=category.id, make_id=brand.id,
    )
    values.update(kw)
    product = Product(**values)
    db.add(product)
    db.commit()
    return product
