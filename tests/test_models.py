"""Testes unitários dos modelos SQLAlchemy."""
import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from patrimonio.models.user import User
from patrimonio.models.category import Category
from patrimonio.models.location import Location
from patrimonio.models.asset import Asset, AssetStatus
from patrimonio.models.history import HistoryLog, HistoryAction, HistoryImmutableError


# ─── User ────────────────────────────────────────────────────────────────────

def test_user_create(db):
    user = User(email="test@example.com", display_name="Teste", hashed_password="hashedpw")
    db.add(user)
    db.commit()
    db.refresh(user)

    assert len(user.id) == 32
    assert user.email == "test@example.com"
    assert user.is_active is True
    assert isinstance(user.created_at, datetime)


def test_user_unique_email(db):
    db.add(User(email="same@same.com", display_name="A", hashed_password="x"))
    db.commit()
    db.add(User(email="same@same.com", display_name="B", hashed_password="x"))
    with pytest.raises(IntegrityError):
        db.commit()


# ─── Category / Location ─────────────────────────────────────────────────────

def test_category_and_location_create(db, user):
    db.add(Category(user_id=user.id, name="Mobiliário"))
    db.add(Location(user_id=user.id, name="Curitiba"))
    db.commit()

    assert db.scalar(select(Category)).name == "Mobiliário"
    assert db.scalar(select(Location)).name == "Curitiba"


# ─── Asset ───────────────────────────────────────────────────────────────────

def test_asset_defaults(db, user):
    asset = Asset(user_id=user.id, name="Mesa", code_id="MOB-001", value=Decimal("950.00"))
    db.add(asset)
    db.commit()
    db.refresh(asset)

    assert asset.status == AssetStatus.ativo
    assert asset.city == ""
    assert asset.category_id is None
    assert asset.observation is None
    assert asset.value == Decimal("950.00")


def test_asset_status_roundtrip(db, user):
    asset = Asset(user_id=user.id, name="Mesa", code_id="MOB-001", value=Decimal("1"), status=AssetStatus.inativo)
    db.add(asset)
    db.commit()
    db.expire_all()

    assert db.get(Asset, asset.id).status == AssetStatus.inativo


# ─── HistoryLog ──────────────────────────────────────────────────────────────

def _log(user) -> HistoryLog:
    return HistoryLog(
        user_id=user.id,
        asset_id="a" * 32,
        asset_name="Notebook",
        code_id="NTB-001",
        action=HistoryAction.created,
        details="Item novo adicionado ao inventário.",
        user_display_name=user.display_name,
    )


def test_history_log_create(db, user):
    log = _log(user)
    db.add(log)
    db.commit()
    db.refresh(log)

    assert log.action == HistoryAction.created
    assert log.action.value == "Criado"
    assert isinstance(log.timestamp, datetime)


def test_history_log_cannot_be_updated(db, user):
    log = _log(user)
    db.add(log)
    db.commit()

    log.details = "adulterado"
    with pytest.raises(HistoryImmutableError):
        db.commit()
    db.rollback()

    db.expire_all()
    assert db.get(HistoryLog, log.id).details == "Item novo adicionado ao inventário."


def test_history_log_cannot_be_deleted(db, user):
    log = _log(user)
    db.add(log)
    db.commit()

    db.delete(log)
    with pytest.raises(HistoryImmutableError):
        db.commit()
    db.rollback()

    assert db.scalar(select(HistoryLog).where(HistoryLog.id == log.id)) is not None
