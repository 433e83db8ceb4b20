"""Input/output contracts of the AI analysis adapters.

Field names follow the JSON the model reads and writes (camelCase), with
snake_case attribute access through populate_by_name.
"""
import enum
from pydantic import BaseModel, Field


class _CamelModel(BaseModel):
    model_config = {"populate_by_name": True}


class ChartDatum(_CamelModel):
    name: str
    value: float


class InventorySummaryInput(_CamelModel):
    total_assets: int = Field(..., ge=0, alias="totalAssets")
    total_value: float = Field(..., ge=0, alias="totalValue")
    total_cities: int = Field(..., ge=0, alias="totalCities")
    created_last_month: int = Field(..., ge=0, alias="createdLastMonth")
    updated_last_month: int = Field(..., ge=0, alias="updatedLastMonth")
    deleted_last_month: int = Field(..., ge=0, alias="deletedLastMonth")
    value_by_city_chart: list[ChartDatum] = Field(default_factory=list, alias="valueByCityChart")
    value_by_category_chart: list[ChartDatum] = Field(default_factory=list, alias="valueByCategoryChart")


class InventorySummaryResponse(BaseModel):
    summary: str


class AnomalyInputItem(_CamelModel):
    name: str
    code_id: str = Field(..., alias="codeId")
    city: str
    value: float
    observation: str | None = None


class AnomalyRequest(_CamelModel):
    items: list[AnomalyInputItem] | None = None   # None → all active assets of the user


class AnomalyType(str, enum.Enum):
    monetary = "value"
    location = "location"


class Anomaly(_CamelModel):
    code_id: str = Field(..., alias="codeId")
    anomaly_type: AnomalyType = Field(..., alias="anomalyType")
    description: str


class AnomalyReport(_CamelModel):
    anomalies: list[Anomaly] = Field(default_factory=list)
