from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from patrimonio.models.asset import AssetStatus


class AssetBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code_id: str = Field(..., min_length=1, max_length=64)
    category_id: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=255)
    value: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    observation: str | None = Field(None, max_length=2000)

    model_config = {"str_strip_whitespace": True}


class AssetCreate(AssetBase):
    pass


class AssetUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    code_id: str | None = Field(None, min_length=1, max_length=64)
    category_id: str | None = Field(None, min_length=1)
    city: str | None = Field(None, min_length=1, max_length=255)
    value: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    observation: str | None = Field(None, max_length=2000)

    model_config = {"str_strip_whitespace": True}


class AssetResponse(BaseModel):
    id: str
    name: str
    code_id: str
    category_id: str | None
    city: str
    value: Decimal
    observation: str | None
    status: AssetStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AssetView(AssetResponse):
    """Asset annotated with display labels resolved by the query layer."""

    category_name: str
    city_label: str


class ReactivateRequest(BaseModel):
    confirm: bool = False


class BulkAssetRequest(BaseModel):
    asset_ids: list[str] = Field(..., min_length=1)
    confirm: bool = False   # required for reactivation only


class BulkAssetResponse(BaseModel):
    processed: list[AssetResponse]
    skipped_ids: list[str]  # inexistentes ou já no estado de destino
