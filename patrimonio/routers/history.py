from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from patrimonio.database import get_db
from patrimonio.models.history import HistoryAction
from patrimonio.models.user import User
from patrimonio.routers.auth import require_user
from patrimonio.schemas.history import HistoryLogResponse
from patrimonio.services import export_service
from patrimonio.services import history_service as svc

router = APIRouter(prefix="/api/history", tags=["history"])


def _filtered(db: Session, user: User, asset_id: str | None, action: HistoryAction | None, search: str):
    return svc.list_history(db, user.id, asset_id=asset_id, action=action, search=search)


@router.get("", response_model=list[HistoryLogResponse])
def list_history(
    asset_id: str | None = Query(None),
    action: HistoryAction | None = Query(None),
    search: str = Query(""),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    """Newest first."""
    return _filtered(db, user, asset_id, action, search)


@router.get("/export/csv")
def export_history_csv(
    asset_id: str | None = Query(None),
    action: HistoryAction | None = Query(None),
    search: str = Query(""),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    csv_bytes = export_service.export_history_csv(_filtered(db, user, asset_id, action, search))
    return Response(
        content=csv_bytes,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=historico.csv"},
    )


@router.get("/export/pdf")
def export_history_pdf(
    asset_id: str | None = Query(None),
    action: HistoryAction | None = Query(None),
    search: str = Query(""),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    pdf_bytes = export_service.export_history_pdf(_filtered(db, user, asset_id, action, search))
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=historico.pdf"},
    )
