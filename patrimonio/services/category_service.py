import logging
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select, update, func

from patrimonio.errors import NotFound, Conflict, PermissionDenied
from patrimonio.models.asset import Asset
from patrimonio.models.category import Category
from patrimonio.schemas.category import CategoryCreate, CategoryUpdate
from patrimonio.services.store import commit_batch

logger = logging.getLogger(__name__)


def get_categories(db: Session, user_id: str) -> list[Category]:
    return list(db.scalars(
        select(Category).where(Category.user_id == user_id).order_by(Category.name)
    ).all())


def get_category(db: Session, user_id: str, category_id: str) -> Category:
    category = db.get(Category, category_id)
    if not category or category.user_id != user_id:
        raise NotFound("Categoria não encontrada")
    return category


def find_by_name(db: Session, user_id: str, name: str) -> Category | None:
    return db.scalar(
        select(Category).where(
            Category.user_id == user_id,
            func.lower(Category.name) == name.strip().lower(),
        )
    )


def _ensure_unique(db: Session, user_id: str, name: str, exclude_id: str | None = None) -> None:
    existing = find_by_name(db, user_id, name)
    if existing and existing.id != exclude_id:
        raise Conflict("Já existe uma categoria com esse nome")


def create_category(db: Session, user_id: str, data: CategoryCreate) -> Category:
    _ensure_unique(db, user_id, data.name)
    category = Category(id=uuid.uuid4().hex, user_id=user_id, name=data.name)
    db.add(category)
    if not commit_batch(db, user_id, operation="create", path=f"categories/{category.id}",
                        payload={"name": data.name}, changes={"categories": [category.id]}):
        raise PermissionDenied("Não foi possível adicionar a categoria")
    db.refresh(category)
    return category


def update_category(db: Session, user_id: str, category_id: str, data: CategoryUpdate) -> Category:
    category = get_category(db, user_id, category_id)
    _ensure_unique(db, user_id, data.name, exclude_id=category.id)
    category.name = data.name
    if not commit_batch(db, user_id, operation="update", path=f"categories/{category.id}",
                        payload={"name": data.name}, changes={"categories": [category.id]}):
        raise PermissionDenied("Não foi possível atualizar a categoria")
    db.refresh(category)
    return category


def delete_category(db: Session, user_id: str, category_id: str) -> int:
    """Delete the category and unlink its assets in the same transaction.

    Returns the number of assets whose category was cleared.
    """
    category = get_category(db, user_id, category_id)
    linked = list(db.scalars(
        select(Asset.id).where(Asset.user_id == user_id, Asset.category_id == category.id)
    ).all())
    if linked:
        db.execute(
            update(Asset)
            .where(Asset.id.in_(linked))
            .values(category_id=None)
            .execution_options(synchronize_session="fetch")
        )
    db.delete(category)
    if not commit_batch(db, user_id, operation="delete", path=f"categories/{category_id}",
                        changes={"categories": [category_id], "assets": linked}):
        raise PermissionDenied("Não foi possível excluir a categoria")
    logger.info("Categoria %s excluída, %d itens desvinculados", category_id, len(linked))
    return len(linked)
