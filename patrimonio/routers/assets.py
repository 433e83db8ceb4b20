from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from patrimonio.database import get_db
from patrimonio.errors import ValidationError
from patrimonio.models.user import User
from patrimonio.routers.auth import require_user
from patrimonio.schemas.asset import (
    AssetCreate, AssetUpdate, AssetResponse, AssetView, BulkAssetRequest, BulkAssetResponse,
)
from patrimonio.schemas.history import HistoryLogResponse
from patrimonio.services import asset_service as svc
from patrimonio.services import history_service
from patrimonio.services.query_service import AssetFilters, SORT_KEYS, filter_assets

router = APIRouter(prefix="/api/assets", tags=["assets"])


def asset_filters(
    city: str | None = Query(None),
    category: str | None = Query(None, description="Nome da categoria"),
    search: str = Query(""),
    sort: str = Query("updated_at"),
    direction: str = Query("desc", pattern="^(asc|desc)$"),
) -> AssetFilters:
    if sort not in SORT_KEYS:
        raise ValidationError(f"Ordenação inválida: {sort}")
    return AssetFilters(city=city, category_name=category, search=search, sort_key=sort, direction=direction)


@router.get("", response_model=list[AssetView])
def list_assets(
    filters: AssetFilters = Depends(asset_filters),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    assets, categories = svc.load_snapshot(db, user.id)
    return filter_assets(assets, categories, filters)


@router.post("", response_model=AssetResponse, status_code=201)
def create_asset(data: AssetCreate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.add_asset(db, user, data)


@router.post("/bulk-deactivate", response_model=BulkAssetResponse)
def bulk_deactivate(data: BulkAssetRequest, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.deactivate_assets(db, user, data.asset_ids)


@router.get("/{asset_id}", response_model=AssetResponse)
def get_asset(asset_id: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.get_asset(db, user.id, asset_id)


@router.put("/{asset_id}", response_model=AssetResponse)
def update_asset(asset_id: str, data: AssetUpdate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.update_asset(db, user, asset_id, data)


@router.delete("/{asset_id}", response_model=AssetResponse)
def delete_asset(asset_id: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    """Soft delete: the asset goes to the trash."""
    return svc.deactivate_asset(db, user, asset_id)


@router.get("/{asset_id}/history", response_model=list[HistoryLogResponse])
def asset_history(asset_id: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return history_service.history_for_asset(db, user.id, asset_id)
