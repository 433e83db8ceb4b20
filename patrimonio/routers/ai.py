from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from patrimonio.database import get_db
from patrimonio.models.asset import AssetStatus
from patrimonio.models.user import User
from patrimonio.routers.auth import require_user
from patrimonio.routers.dashboard import build_summary
from patrimonio.schemas.ai import (
    AnomalyInputItem, AnomalyReport, AnomalyRequest, InventorySummaryInput, InventorySummaryResponse,
)
from patrimonio.services import ai_service, asset_service
from patrimonio.services.ai_service import AIClient, get_ai_client

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/summary", response_model=InventorySummaryResponse)
def inventory_summary(
    data: InventorySummaryInput | None = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    client: AIClient = Depends(get_ai_client),
):
    """Without a body the current dashboard figures are analysed."""
    if data is None:
        data = InventorySummaryInput.model_validate(build_summary(db, user))
    return {"summary": ai_service.summarize_inventory(client, data)}


@router.post("/anomalies", response_model=AnomalyReport)
def asset_anomalies(
    data: AnomalyRequest | None = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    client: AIClient = Depends(get_ai_client),
):
    """Without items every active asset of the user is analysed."""
    items = data.items if data else None
    if items is None:
        items = [
            AnomalyInputItem(
                name=a.name,
                code_id=a.code_id,
                city=a.city,
                value=float(a.value),
                observation=a.observation,
            )
            for a in asset_service.list_assets(db, user.id, status=AssetStatus.ativo)
        ]
    return {"anomalies": ai_service.detect_anomalies(client, items)}
