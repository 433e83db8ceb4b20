"""Mutation layer: the only code path that changes asset state.

Every operation writes the asset and exactly one HistoryLog row and commits
both through store.commit_batch. Lookup failures (NotFound, InvalidState)
raise synchronously; a rejected commit is reported on the error channel and
the caller gets the optimistic result.
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import inspect, select

from patrimonio.errors import NotFound, ValidationError, InvalidState
from patrimonio.models.asset import Asset, AssetStatus
from patrimonio.models.category import Category
from patrimonio.models.history import HistoryAction
from patrimonio.models.user import User
from patrimonio.schemas.asset import AssetCreate, AssetUpdate
from patrimonio.services import history_service
from patrimonio.services.query_service import NO_CATEGORY
from patrimonio.services.store import commit_batch

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "code_id", "category_id", "city", "value")

# Order matches the diff text shown in the history screen
_DIFF_FIELDS = [
    ("name", "nome alterado"),
    ("code_id", "código ID alterado"),
    ("value", "valor alterado"),
    ("observation", "observação alterada"),
    ("city", "cidade alterada"),
    ("category_id", "categoria alterada"),
]


def list_assets(db: Session, user_id: str, status: AssetStatus | None = None) -> list[Asset]:
    query = select(Asset).where(Asset.user_id == user_id)
    if status is not None:
        query = query.where(Asset.status == status)
    return list(db.scalars(query).all())


def get_asset(db: Session, user_id: str, asset_id: str) -> Asset:
    asset = db.get(Asset, asset_id)
    if not asset or asset.user_id != user_id:
        raise NotFound("Patrimônio não encontrado")
    return asset


def _require_category(db: Session, user_id: str, category_id: str) -> Category:
    category = db.get(Category, category_id)
    if not category or category.user_id != user_id:
        raise ValidationError("Categoria não encontrada")
    return category


def _payload(asset: Asset) -> dict:
    return {
        "name": asset.name,
        "code_id": asset.code_id,
        "category_id": asset.category_id,
        "city": asset.city,
        "value": asset.value,
        "observation": asset.observation,
        "status": asset.status,
    }


def _detached_copy(asset: Asset) -> Asset:
    """Transient copy of the current column values; unaffected by a rollback."""
    return Asset(**{attr.key: getattr(asset, attr.key) for attr in inspect(Asset).column_attrs})


def _fmt(field: str, value, category_names: dict[str, str]) -> str:
    if field == "category_id":
        return category_names.get(value, NO_CATEGORY) if value else NO_CATEGORY
    if field == "value" and value is not None:
        return f"{Decimal(value):.2f}"
    return "" if value is None else str(value)


def _same(field: str, old, new) -> bool:
    if field == "value":
        return Decimal(old) == Decimal(new)
    if field == "observation":
        return (old or "") == (new or "")
    return old == new


def describe_changes(old: dict, new: dict, category_names: dict[str, str]) -> str:
    """Human-readable diff stored in HistoryLog.details for an update."""
    changes = []
    for field, label in _DIFF_FIELDS:
        if field not in new or _same(field, old.get(field), new[field]):
            continue
        before = _fmt(field, old.get(field), category_names)
        after = _fmt(field, new[field], category_names)
        changes.append(f"{label} de '{before}' para '{after}'")
    if not changes:
        return "Nenhuma alteração registrada nos campos."
    return ", ".join(changes)


def add_asset(db: Session, actor: User, data: AssetCreate) -> Asset:
    asset = _stage_new(db, actor, data, "Item novo adicionado ao inventário.", datetime.now(timezone.utc))

    if commit_batch(
        db, actor.id,
        operation="create", path=f"assets/{asset.id}", payload=_payload(asset),
        changes={"assets": [asset.id], "history": [asset.id]},
    ):
        logger.info("Patrimônio %s (%s) criado por %s", asset.id, asset.code_id, actor.id)
    return asset


def add_assets(db: Session, actor: User, rows: list[AssetCreate], details: str) -> list[Asset]:
    """Create several assets (one Criado log each) in a single transaction."""
    now = datetime.now(timezone.utc)
    assets = [_stage_new(db, actor, data, details, now) for data in rows]
    if not assets:
        return []

    ids = [a.id for a in assets]
    if commit_batch(
        db, actor.id,
        operation="create", path="assets", payload={"count": len(ids)},
        changes={"assets": ids, "history": ids},
    ):
        logger.info("%d patrimônios criados em lote por %s", len(ids), actor.id)
    return assets


def _stage_new(db: Session, actor: User, data: AssetCreate, details: str, now: datetime) -> Asset:
    _require_category(db, actor.id, data.category_id)
    # id assigned up front so the optimistic result carries it
    asset = Asset(
        id=uuid.uuid4().hex,
        user_id=actor.id,
        name=data.name,
        code_id=data.code_id,
        category_id=data.category_id,
        city=data.city,
        value=data.value,
        observation=data.observation or None,
        status=AssetStatus.ativo,
        created_at=now,
        updated_at=now,
    )
    db.add(asset)
    history_service.record(db, actor, asset, HistoryAction.created, details)
    return asset


def update_asset(db: Session, actor: User, asset_id: str, data: AssetUpdate) -> Asset:
    asset = get_asset(db, actor.id, asset_id)
    changes = data.model_dump(exclude_unset=True)
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(f"O campo '{field}' é obrigatório")
    if "category_id" in changes and changes["category_id"] != asset.category_id:
        _require_category(db, actor.id, changes["category_id"])

    old = _payload(asset)
    category_names = {
        c.id: c.name for c in db.scalars(select(Category).where(Category.user_id == actor.id)).all()
    }
    details = describe_changes(old, changes, category_names)

    if "observation" in changes:
        changes["observation"] = changes["observation"] or None
    for field, value in changes.items():
        setattr(asset, field, value)
    asset.updated_at = datetime.now(timezone.utc)
    history_service.record(db, actor, asset, HistoryAction.updated, details)

    intended = _detached_copy(asset)
    if not commit_batch(
        db, actor.id,
        operation="update", path=f"assets/{asset.id}", payload=changes,
        changes={"assets": [asset.id], "history": [asset.id]},
    ):
        return intended
    logger.info("Patrimônio %s atualizado por %s: %s", asset.id, actor.id, details)
    return asset


def deactivate_asset(db: Session, actor: User, asset_id: str) -> Asset:
    """Soft delete: moves the asset to the trash. Nothing is removed."""
    asset = get_asset(db, actor.id, asset_id)
    if asset.status == AssetStatus.inativo:
        raise InvalidState("O item já está na lixeira")
    _transition(db, actor, asset, AssetStatus.inativo, HistoryAction.deactivated, "Item foi movido para a lixeira.")

    intended = _detached_copy(asset)
    if not commit_batch(
        db, actor.id,
        operation="update", path=f"assets/{asset.id}", payload={"status": AssetStatus.inativo},
        changes={"assets": [asset.id], "history": [asset.id]},
    ):
        return intended
    logger.info("Patrimônio %s movido para a lixeira por %s", asset.id, actor.id)
    return asset


def reactivate_asset(db: Session, actor: User, asset_id: str, confirm: bool = False) -> Asset:
    asset = get_asset(db, actor.id, asset_id)
    if not confirm:
        raise ValidationError("Confirme a reativação do item")
    if asset.status != AssetStatus.inativo:
        raise InvalidState("O item já está ativo")
    _transition(db, actor, asset, AssetStatus.ativo, HistoryAction.reactivated, "Item foi restaurado da lixeira.")

    intended = _detached_copy(asset)
    if not commit_batch(
        db, actor.id,
        operation="update", path=f"assets/{asset.id}", payload={"status": AssetStatus.ativo},
        changes={"assets": [asset.id], "history": [asset.id]},
    ):
        return intended
    logger.info("Patrimônio %s reativado por %s", asset.id, actor.id)
    return asset


def _transition(db: Session, actor: User, asset: Asset, status: AssetStatus, action: HistoryAction, details: str) -> None:
    asset.status = status
    asset.updated_at = datetime.now(timezone.utc)
    history_service.record(db, actor, asset, action, details)


def deactivate_assets(db: Session, actor: User, asset_ids: list[str]) -> dict:
    """Bulk soft delete in one transaction. Missing or already inactive ids are skipped."""
    return _bulk_transition(
        db, actor, asset_ids,
        source=AssetStatus.ativo, target=AssetStatus.inativo,
        action=HistoryAction.deactivated, details="Item foi movido para a lixeira em lote.",
    )


def reactivate_assets(db: Session, actor: User, asset_ids: list[str], confirm: bool = False) -> dict:
    if not confirm:
        raise ValidationError("Confirme a reativação dos itens")
    return _bulk_transition(
        db, actor, asset_ids,
        source=AssetStatus.inativo, target=AssetStatus.ativo,
        action=HistoryAction.reactivated, details="Item foi restaurado da lixeira em lote.",
    )


def _bulk_transition(
    db: Session,
    actor: User,
    asset_ids: list[str],
    *,
    source: AssetStatus,
    target: AssetStatus,
    action: HistoryAction,
    details: str,
) -> dict:
    processed: list[Asset] = []
    skipped_ids: list[str] = []

    for asset_id in dict.fromkeys(asset_ids):
        asset = db.get(Asset, asset_id)
        if not asset or asset.user_id != actor.id or asset.status != source:
            skipped_ids.append(asset_id)
            continue
        _transition(db, actor, asset, target, action, details)
        processed.append(asset)

    if processed:
        ids = [a.id for a in processed]
        intended = [_detached_copy(a) for a in processed]
        if not commit_batch(
            db, actor.id,
            operation="update", path="assets", payload={"status": target, "ids": ids},
            changes={"assets": ids, "history": ids},
        ):
            return {"processed": intended, "skipped_ids": skipped_ids}
        logger.info("%d patrimônios -> %s por %s", len(ids), target.value, actor.id)

    return {"processed": processed, "skipped_ids": skipped_ids}


def load_snapshot(db: Session, user_id: str) -> tuple[list[Asset], list[Category]]:
    """Every asset (any status) and category of the user, for the query layer."""
    categories = list(db.scalars(select(Category).where(Category.user_id == user_id)).all())
    return list_assets(db, user_id), categories
