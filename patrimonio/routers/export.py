from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from patrimonio.database import get_db
from patrimonio.models.user import User
from patrimonio.routers.assets import asset_filters
from patrimonio.routers.auth import require_user
from patrimonio.routers.dashboard import build_summary
from patrimonio.schemas.importing import ImportResult
from patrimonio.services import asset_service
from patrimonio.services.query_service import AssetFilters, filter_assets
import patrimonio.services.export_service as svc
import patrimonio.services.import_service as import_svc

router = APIRouter(prefix="/api", tags=["export"])

_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
_MAX_UPLOAD = 10 * 1024 * 1024


def _rows(db: Session, user: User, filters: AssetFilters):
    assets, categories = asset_service.load_snapshot(db, user.id)
    return filter_assets(assets, categories, filters)


@router.get("/export/assets/csv")
def export_assets_csv(
    filters: AssetFilters = Depends(asset_filters),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return Response(
        content=svc.export_assets_csv(_rows(db, user, filters)),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=patrimonio.csv"},
    )


@router.get("/export/assets/excel")
def export_assets_excel(
    filters: AssetFilters = Depends(asset_filters),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return Response(
        content=svc.export_assets_excel(_rows(db, user, filters)),
        media_type=_XLSX,
        headers={"Content-Disposition": "attachment; filename=patrimonio.xlsx"},
    )


@router.get("/export/assets/pdf")
def export_assets_pdf(
    filters: AssetFilters = Depends(asset_filters),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return Response(
        content=svc.export_assets_pdf(_rows(db, user, filters)),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=patrimonio.pdf"},
    )


@router.get("/export/dashboard/csv")
def export_dashboard_csv(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return Response(
        content=svc.export_dashboard_csv(build_summary(db, user)),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=painel.csv"},
    )


@router.get("/export/dashboard/pdf")
def export_dashboard_pdf(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return Response(
        content=svc.export_dashboard_pdf(build_summary(db, user)),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=painel.pdf"},
    )


@router.post("/import/assets", response_model=ImportResult)
def import_assets(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    """Cria itens a partir de um CSV (ou .xlsx) com o cabeçalho do modelo ou da exportação."""
    data = file.file.read(_MAX_UPLOAD + 1)
    if len(data) > _MAX_UPLOAD:
        return {"success": 0, "failed": 0, "errors": ["Arquivo maior que 10 MB"]}
    return import_svc.import_assets(db, user, data, file.filename or "")
