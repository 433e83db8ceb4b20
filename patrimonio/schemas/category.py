from datetime import datetime
from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)

    model_config = {"str_strip_whitespace": True}


class CategoryUpdate(CategoryCreate):
    pass


class CategoryResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CategoryDeleteResponse(BaseModel):
    id: str
    cleared_assets: int
