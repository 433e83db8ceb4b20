"""Testes da camada de mutação: cada operação grava o item e um registro de histórico."""
import pydantic
import pytest
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from patrimonio.errors import NotFound, ValidationError, InvalidState
from patrimonio.events import bus, error_channel, StoreChange
from patrimonio.models.asset import Asset, AssetStatus
from patrimonio.models.history import HistoryLog, HistoryAction
from patrimonio.schemas.asset import AssetCreate, AssetUpdate
from patrimonio.schemas.category import CategoryCreate
from patrimonio.services import asset_service as svc
from patrimonio.services import category_service, history_service
from patrimonio.services.query_service import NO_CATEGORY


def _logs(db, asset_id):
    return history_service.history_for_asset(db, db.get(Asset, asset_id).user_id, asset_id)


# ── Cenário completo ─────────────────────────────────────────────────────────

def test_add_deactivate_reactivate_scenario(db, user, make_asset):
    asset = make_asset()
    assert asset.status == AssetStatus.ativo
    logs = _logs(db, asset.id)
    assert [log.action for log in logs] == [HistoryAction.created]
    assert logs[0].details == "Item novo adicionado ao inventário."

    svc.deactivate_asset(db, user, asset.id)
    stored = db.get(Asset, asset.id)
    assert stored.status == AssetStatus.inativo
    assert stored.name == "Notebook"
    assert stored.value == Decimal("4500.00")

    svc.reactivate_asset(db, user, asset.id, confirm=True)
    assert db.get(Asset, asset.id).status == AssetStatus.ativo

    actions = {log.action for log in _logs(db, asset.id)}
    assert actions == {HistoryAction.created, HistoryAction.deactivated, HistoryAction.reactivated}
    assert len(_logs(db, asset.id)) == 3


def test_history_snapshot_fields(db, user, make_asset):
    asset = make_asset()
    log = _logs(db, asset.id)[0]
    assert log.asset_id == asset.id
    assert log.asset_name == "Notebook"
    assert log.code_id == "NTB-001"
    assert log.user_id == user.id
    assert log.user_display_name == "Ana Souza"


def test_add_requires_known_category(db, user):
    with pytest.raises(ValidationError):
        svc.add_asset(db, user, AssetCreate(
            name="X", code_id="X-1", category_id="nao-existe", city="SP", value=Decimal("1"),
        ))
    assert db.scalar(select(Asset)) is None
    assert db.scalar(select(HistoryLog)) is None


@pytest.mark.parametrize("value", ["0", "-10", "-0.01"])
def test_non_positive_value_rejected(value, category):
    with pytest.raises(pydantic.ValidationError):
        AssetCreate(name="X", code_id="X-1", category_id=category.id, city="SP", value=Decimal(value))


def test_smallest_value_accepted(make_asset):
    asset = make_asset(value=Decimal("0.01"))
    assert asset.value == Decimal("0.01")


# ── Atualização ──────────────────────────────────────────────────────────────

def test_update_writes_diff(db, user, make_asset):
    asset = make_asset()
    svc.update_asset(db, user, asset.id, AssetUpdate(name="Notebook Pro", value=Decimal("5000")))

    log = _logs(db, asset.id)[0]
    assert log.action == HistoryAction.updated
    assert log.details == (
        "nome alterado de 'Notebook' para 'Notebook Pro', "
        "valor alterado de '4500.00' para '5000.00'"
    )
    # snapshot is taken after the change
    assert log.asset_name == "Notebook Pro"


def test_update_category_diff_uses_names(db, user, category, make_asset):
    other = category_service.create_category(db, user.id, CategoryCreate(name="Mobiliário"))
    asset = make_asset()
    svc.update_asset(db, user, asset.id, AssetUpdate(category_id=other.id))

    assert _logs(db, asset.id)[0].details == "categoria alterada de 'Informática' para 'Mobiliário'"


def test_update_without_changes(db, user, make_asset):
    asset = make_asset()
    svc.update_asset(db, user, asset.id, AssetUpdate(name="Notebook", value=Decimal("4500.00")))

    logs = _logs(db, asset.id)
    assert len(logs) == 2
    assert logs[0].details == "Nenhuma alteração registrada nos campos."


def test_update_required_field_cannot_be_cleared(db, user, make_asset):
    asset = make_asset()
    with pytest.raises(ValidationError):
        svc.update_asset(db, user, asset.id, AssetUpdate(name=None))
    assert len(_logs(db, asset.id)) == 1


def test_update_missing_asset(db, user):
    with pytest.raises(NotFound):
        svc.update_asset(db, user, "0" * 32, AssetUpdate(name="X"))


def test_other_users_asset_is_not_found(db, other_user, make_asset):
    asset = make_asset()
    with pytest.raises(NotFound):
        svc.deactivate_asset(db, other_user, asset.id)


def test_describe_changes_observation_none_equals_empty():
    old = {"observation": None}
    assert svc.describe_changes(old, {"observation": ""}, {}) == "Nenhuma alteração registrada nos campos."
    assert svc.describe_changes(old, {"observation": "nova"}, {}) == "observação alterada de '' para 'nova'"


# ── Lixeira ──────────────────────────────────────────────────────────────────

def test_deactivate_twice_is_invalid(db, user, make_asset):
    asset = make_asset()
    svc.deactivate_asset(db, user, asset.id)
    with pytest.raises(InvalidState):
        svc.deactivate_asset(db, user, asset.id)
    assert len(_logs(db, asset.id)) == 2


def test_reactivate_active_is_invalid(db, user, make_asset):
    asset = make_asset()
    with pytest.raises(InvalidState):
        svc.reactivate_asset(db, user, asset.id, confirm=True)
    assert len(_logs(db, asset.id)) == 1


def test_reactivate_requires_confirmation(db, user, make_asset):
    asset = make_asset()
    svc.deactivate_asset(db, user, asset.id)
    with pytest.raises(ValidationError):
        svc.reactivate_asset(db, user, asset.id)
    assert db.get(Asset, asset.id).status == AssetStatus.inativo


def test_bulk_deactivate_skips_ineligible(db, user, make_asset):
    a = make_asset(code_id="A-1")
    b = make_asset(code_id="B-1")
    svc.deactivate_asset(db, user, b.id)

    result = svc.deactivate_assets(db, user, [a.id, b.id, "ghost", a.id])

    assert [x.id for x in result["processed"]] == [a.id]
    assert result["skipped_ids"] == [b.id, "ghost"]
    assert db.get(Asset, a.id).status == AssetStatus.inativo


def test_bulk_reactivate(db, user, make_asset):
    a = make_asset(code_id="A-1")
    b = make_asset(code_id="B-1")
    svc.deactivate_assets(db, user, [a.id, b.id])

    with pytest.raises(ValidationError):
        svc.reactivate_assets(db, user, [a.id, b.id])

    result = svc.reactivate_assets(db, user, [a.id, b.id], confirm=True)
    assert len(result["processed"]) == 2
    for asset_id in (a.id, b.id):
        assert [log.action for log in _logs(db, asset_id)][0] == HistoryAction.reactivated


def test_add_assets_single_batch(db, user, category):
    rows = [
        AssetCreate(name=f"Item {i}", code_id=f"IT-{i}", category_id=category.id, city="SP", value=Decimal("10"))
        for i in range(3)
    ]
    created = svc.add_assets(db, user, rows, "Item importado via CSV.")

    assert len(created) == 3
    logs = db.scalars(select(HistoryLog)).all()
    assert len(logs) == 3
    assert {log.details for log in logs} == {"Item importado via CSV."}


# ── Falhas de gravação e eventos ─────────────────────────────────────────────

def test_commit_failure_goes_to_error_channel(db, user, category, monkeypatch):
    def reject():
        raise OperationalError("COMMIT", {}, Exception("attempt to write a readonly database"))

    monkeypatch.setattr(db, "commit", reject)
    asset = svc.add_asset(db, user, AssetCreate(
        name="Notebook", code_id="NTB-001", category_id=category.id, city="SP", value=Decimal("4500"),
    ))
    monkeypatch.undo()

    # optimistic result, nothing stored
    assert asset.code_id == "NTB-001"
    assert db.scalar(select(Asset)) is None
    assert db.scalar(select(HistoryLog)) is None

    errors = error_channel.recent(user.id)
    assert len(errors) == 1
    assert errors[0].kind == "permission-error"
    assert errors[0].operation == "create"
    assert errors[0].path == f"assets/{asset.id}"
    assert "readonly" in errors[0].message
    assert errors[0].payload["value"] == "4500"


def _reject_commits(db, monkeypatch):
    def reject():
        raise OperationalError("COMMIT", {}, Exception("attempt to write a readonly database"))

    monkeypatch.setattr(db, "commit", reject)


def test_rejected_update_returns_intended_state(db, user, make_asset, monkeypatch):
    asset = make_asset()
    _reject_commits(db, monkeypatch)
    result = svc.update_asset(db, user, asset.id, AssetUpdate(name="Notebook Pro", value=Decimal("5000")))
    monkeypatch.undo()

    assert result.name == "Notebook Pro"
    assert result.value == Decimal("5000")
    assert result.id == asset.id

    stored = db.get(Asset, asset.id)
    assert stored.name == "Notebook"
    assert stored.value == Decimal("4500.00")
    assert [log.action for log in _logs(db, asset.id)] == [HistoryAction.created]
    assert error_channel.recent(user.id)[0].path == f"assets/{asset.id}"


def test_rejected_deactivate_and_reactivate_return_intended_status(db, user, make_asset, monkeypatch):
    asset = make_asset()
    _reject_commits(db, monkeypatch)
    result = svc.deactivate_asset(db, user, asset.id)
    monkeypatch.undo()

    assert result.status == AssetStatus.inativo
    assert db.get(Asset, asset.id).status == AssetStatus.ativo

    svc.deactivate_asset(db, user, asset.id)
    _reject_commits(db, monkeypatch)
    result = svc.reactivate_asset(db, user, asset.id, confirm=True)
    monkeypatch.undo()

    assert result.status == AssetStatus.ativo
    assert db.get(Asset, asset.id).status == AssetStatus.inativo
    assert len(error_channel.recent(user.id)) == 2


def test_rejected_bulk_deactivate_returns_intended_status(db, user, make_asset, monkeypatch):
    a = make_asset(code_id="A-1")
    b = make_asset(code_id="B-1")
    _reject_commits(db, monkeypatch)
    result = svc.deactivate_assets(db, user, [a.id, b.id])
    monkeypatch.undo()

    assert [r.status for r in result["processed"]] == [AssetStatus.inativo, AssetStatus.inativo]
    assert {x.status for x in svc.list_assets(db, user.id)} == {AssetStatus.ativo}


def test_update_clears_observation_to_none(db, user, make_asset):
    asset = make_asset(observation="Sala 2")
    svc.update_asset(db, user, asset.id, AssetUpdate(observation=""))
    assert db.get(Asset, asset.id).observation is None


def test_successful_commit_publishes_changes(db, user, make_asset):
    seen = []
    unsubscribe = bus.subscribe(seen.append)
    try:
        asset = make_asset()
    finally:
        unsubscribe()

    changes = [e for e in seen if isinstance(e, StoreChange)]
    assert {c.collection for c in changes} == {"assets", "history"}
    assert all(c.ids == [asset.id] and c.user_id == user.id for c in changes)


def test_unresolved_category_label_matches_query_layer():
    assert svc.describe_changes({"category_id": "c1"}, {"category_id": "gone"}, {"c1": "Informática"}) == (
        f"categoria alterada de 'Informática' para '{NO_CATEGORY}'"
    )
