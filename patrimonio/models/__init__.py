from patrimonio.models.user import User
from patrimonio.models.category import Category
from patrimonio.models.location import Location
from patrimonio.models.asset import Asset, AssetStatus
from patrimonio.models.history import HistoryLog, HistoryAction

__all__ = ["User", "Category", "Location", "Asset", "AssetStatus", "HistoryLog", "HistoryAction"]
