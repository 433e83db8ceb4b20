from pydantic import BaseModel


class ChartPoint(BaseModel):
    name: str
    value: float


class CountPoint(BaseModel):
    name: str
    count: int


class SeriesPoint(BaseModel):
    date: str       # dd/mm
    value: int      # cumulative


class DashboardSummary(BaseModel):
    total_assets: int
    total_value: float
    total_cities: int
    created_last_month: int
    updated_last_month: int
    deleted_last_month: int
    value_by_city_chart: list[ChartPoint]
    value_by_category_chart: list[ChartPoint]
    items_by_city_chart: list[CountPoint]
    items_by_category_chart: list[CountPoint]
    created_chart: list[SeriesPoint]
    updated_chart: list[SeriesPoint]
    deleted_chart: list[SeriesPoint]
