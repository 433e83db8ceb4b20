import os

# Must be set before patrimonio.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AI_API_KEY", "")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from patrimonio.database import Base
from patrimonio.events import error_channel
from patrimonio.models.user import User
from patrimonio.schemas.asset import AssetCreate
from patrimonio.schemas.category import CategoryCreate
from patrimonio.schemas.location import LocationCreate
from patrimonio.services import asset_service, category_service, location_service


TEST_DB_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db():
    engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _clean_error_channel():
    error_channel.clear()
    yield
    error_channel.clear()


@pytest.fixture
def user(db):
    user = User(email="ana@example.com", display_name="Ana Souza", hashed_password="x")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db):
    user = User(email="bruno@example.com", display_name="Bruno Lima", hashed_password="x")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def category(db, user):
    return category_service.create_category(db, user.id, CategoryCreate(name="Informática"))


@pytest.fixture
def locations(db, user):
    return [
        location_service.create_location(db, user.id, LocationCreate(name=name))
        for name in ("São Paulo", "Rio")
    ]


@pytest.fixture
def make_asset(db, user, category):
    def _make(**overrides):
        data = {
            "name": "Notebook",
            "code_id": "NTB-001",
            "category_id": category.id,
            "city": "São Paulo",
            "value": Decimal("4500"),
        }
        data.update(overrides)
        return asset_service.add_asset(db, user, AssetCreate(**data))
    return _make
