from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from patrimonio.database import get_db
from patrimonio.models.user import User
from patrimonio.routers.auth import require_user
from patrimonio.schemas.asset import (
    AssetResponse, AssetView, BulkAssetRequest, BulkAssetResponse, ReactivateRequest,
)
from patrimonio.services import asset_service as svc
from patrimonio.services.query_service import trash_view

router = APIRouter(prefix="/api/trash", tags=["trash"])


@router.get("", response_model=list[AssetView])
def list_trash(
    search: str = Query(""),
    category: str | None = Query(None),
    direction: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    assets, categories = svc.load_snapshot(db, user.id)
    return trash_view(assets, categories, search=search, category_name=category, direction=direction)


@router.post("/bulk-reactivate", response_model=BulkAssetResponse)
def bulk_reactivate(data: BulkAssetRequest, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.reactivate_assets(db, user, data.asset_ids, confirm=data.confirm)


@router.post("/{asset_id}/reactivate", response_model=AssetResponse)
def reactivate(
    asset_id: str,
    data: ReactivateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return svc.reactivate_asset(db, user, asset_id, confirm=data.confirm)
