from datetime import datetime
from pydantic import BaseModel, Field


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    model_config = {"str_strip_whitespace": True}


class LocationUpdate(LocationCreate):
    pass


class LocationResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class LocationDeleteResponse(BaseModel):
    id: str
    cleared_assets: int
