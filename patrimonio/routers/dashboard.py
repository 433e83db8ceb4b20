from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from patrimonio.database import get_db
from patrimonio.models.user import User
from patrimonio.routers.auth import require_user
from patrimonio.schemas.dashboard import DashboardSummary
from patrimonio.services import asset_service, history_service
from patrimonio.services.query_service import dashboard_summary

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def build_summary(db: Session, user: User) -> dict:
    assets, categories = asset_service.load_snapshot(db, user.id)
    return dashboard_summary(assets, categories, history_service.list_history(db, user.id))


@router.get("", response_model=DashboardSummary)
def get_dashboard(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return build_summary(db, user)
