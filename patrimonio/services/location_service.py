import logging
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select, update, func

from patrimonio.errors import NotFound, Conflict, PermissionDenied
from patrimonio.models.asset import Asset
from patrimonio.models.location import Location
from patrimonio.schemas.location import LocationCreate, LocationUpdate
from patrimonio.services.store import commit_batch

logger = logging.getLogger(__name__)


def get_locations(db: Session, user_id: str) -> list[Location]:
    return list(db.scalars(
        select(Location).where(Location.user_id == user_id).order_by(Location.name)
    ).all())


def get_location(db: Session, user_id: str, loc_id: str) -> Location:
    loc = db.get(Location, loc_id)
    if not loc or loc.user_id != user_id:
        raise NotFound("Local não encontrado")
    return loc


def find_by_name(db: Session, user_id: str, name: str) -> Location | None:
    return db.scalar(
        select(Location).where(
            Location.user_id == user_id,
            func.lower(Location.name) == name.strip().lower(),
        )
    )


def _ensure_unique(db: Session, user_id: str, name: str, exclude_id: str | None = None) -> None:
    existing = find_by_name(db, user_id, name)
    if existing and existing.id != exclude_id:
        raise Conflict("Já existe um local com esse nome")


def _assets_at(db: Session, user_id: str, name: str) -> list[str]:
    return list(db.scalars(
        select(Asset.id).where(Asset.user_id == user_id, Asset.city == name)
    ).all())


def create_location(db: Session, user_id: str, data: LocationCreate) -> Location:
    _ensure_unique(db, user_id, data.name)
    loc = Location(id=uuid.uuid4().hex, user_id=user_id, name=data.name)
    db.add(loc)
    if not commit_batch(db, user_id, operation="create", path=f"locations/{loc.id}",
                        payload={"name": data.name}, changes={"locations": [loc.id]}):
        raise PermissionDenied("Não foi possível adicionar o local")
    db.refresh(loc)
    return loc


def update_location(db: Session, user_id: str, loc_id: str, data: LocationUpdate) -> Location:
    """Rename; assets are linked by name, so their city is rewritten in the same transaction."""
    loc = get_location(db, user_id, loc_id)
    _ensure_unique(db, user_id, data.name, exclude_id=loc.id)
    old_name = loc.name
    moved = _assets_at(db, user_id, old_name) if old_name != data.name else []
    if moved:
        db.execute(
            update(Asset)
            .where(Asset.id.in_(moved))
            .values(city=data.name)
            .execution_options(synchronize_session="fetch")
        )
    loc.name = data.name
    if not commit_batch(db, user_id, operation="update", path=f"locations/{loc.id}",
                        payload={"name": data.name}, changes={"locations": [loc.id], "assets": moved}):
        raise PermissionDenied("Não foi possível atualizar o local")
    db.refresh(loc)
    return loc


def delete_location(db: Session, user_id: str, loc_id: str) -> int:
    """Delete the location and clear the city of every asset that pointed at it.

    Scan-then-update: assets created concurrently with the old name are not
    covered. Returns the number of assets unlinked.
    """
    loc = get_location(db, user_id, loc_id)
    linked = _assets_at(db, user_id, loc.name)
    if linked:
        db.execute(
            update(Asset)
            .where(Asset.id.in_(linked))
            .values(city="")
            .execution_options(synchronize_session="fetch")
        )
    db.delete(loc)
    if not commit_batch(db, user_id, operation="delete", path=f"locations/{loc_id}",
                        changes={"locations": [loc_id], "assets": linked}):
        raise PermissionDenied("Não foi possível excluir o local")
    logger.info("Local %s excluído, %d itens desvinculados", loc_id, len(linked))
    return len(linked)
