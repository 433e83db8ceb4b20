from patrimonio.schemas.user import UserCreate, UserUpdate, UserResponse
from patrimonio.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse
from patrimonio.schemas.location import LocationCreate, LocationUpdate, LocationResponse
from patrimonio.schemas.asset import AssetCreate, AssetUpdate, AssetResponse, AssetView
from patrimonio.schemas.history import HistoryLogResponse
from patrimonio.schemas.importing import ImportResult

__all__ = [
    "UserCreate", "UserUpdate", "UserResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "LocationCreate", "LocationUpdate", "LocationResponse",
    "AssetCreate", "AssetUpdate", "AssetResponse", "AssetView",
    "HistoryLogResponse",
    "ImportResult",
]
