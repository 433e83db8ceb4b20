import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from patrimonio.main import app
from patrimonio.database import Base, get_db
from patrimonio.models.user import User
from patrimonio.routers import auth
from patrimonio.services.user_service import hash_password

TEST_DB_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def session_factory():
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Ensure all connections share same in-memory DB
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def anon_client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    # Default account used by the logged-in client
    db = session_factory()
    db.add(User(email="admin@test.com", display_name="Admin Teste", hashed_password=hash_password("admin12345")))
    db.commit()
    db.close()

    auth._login_attempts.clear()
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(anon_client):
    res = anon_client.post("/api/auth/login", data={"email": "admin@test.com", "password": "admin12345"})
    assert res.status_code == 200
    return anon_client


@pytest.fixture
def category_id(client):
    return client.post("/api/categories", json={"name": "Informática"}).json()["id"]


@pytest.fixture
def cities(client):
    for name in ("São Paulo", "Rio"):
        client.post("/api/locations", json={"name": name})
    return ["São Paulo", "Rio"]


@pytest.fixture
def new_asset(client, category_id, cities):
    def _create(**overrides):
        payload = {
            "name": "Notebook",
            "code_id": "NTB-001",
            "category_id": category_id,
            "city": "São Paulo",
            "value": "4500",
        }
        payload.update(overrides)
        res = client.post("/api/assets", json=payload)
        assert res.status_code == 201, res.text
        return res.json()
    return _create
