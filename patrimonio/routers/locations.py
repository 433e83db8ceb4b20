from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from patrimonio.database import get_db
from patrimonio.models.user import User
from patrimonio.schemas.location import LocationCreate, LocationUpdate, LocationResponse, LocationDeleteResponse
from patrimonio.routers.auth import require_user
import patrimonio.services.location_service as svc

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("", response_model=list[LocationResponse])
def list_locations(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.get_locations(db, user.id)


@router.post("", response_model=LocationResponse, status_code=201)
def create_location(data: LocationCreate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.create_location(db, user.id, data)


@router.get("/{loc_id}", response_model=LocationResponse)
def get_location(loc_id: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.get_location(db, user.id, loc_id)


@router.put("/{loc_id}", response_model=LocationResponse)
def update_location(loc_id: str, data: LocationUpdate, db: Session = Depends(get_db), user: User = Depends(require_user)):
    return svc.update_location(db, user.id, loc_id, data)


@router.delete("/{loc_id}", response_model=LocationDeleteResponse)
def delete_location(loc_id: str, db: Session = Depends(get_db), user: User = Depends(require_user)):
    cleared = svc.delete_location(db, user.id, loc_id)
    return {"id": loc_id, "cleared_assets": cleared}
