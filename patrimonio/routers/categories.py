from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from patrimonio.database import get_db
from patrimonio.models.user import User
from patrimonio.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse, CategoryDeleteResponse
from patrimonio.routers.auth import require_user
import patrimonio.services.category_service as svc

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
def list_categories(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.get_categories(db, user.id)


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(data: CategoryCreate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.create_category(db, user.id, data)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.get_category(db, user.id, category_id)


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(category_id: str, data: CategoryUpdate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.update_category(db, user.id, category_id, data)


@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
def delete_category(category_id: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    cleared = svc.delete_category(db, user.id, category_id)
    return {"id": category_id, "cleared_assets": cleared}
