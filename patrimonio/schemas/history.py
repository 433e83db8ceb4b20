from datetime import datetime
from pydantic import BaseModel
from patrimonio.models.history import HistoryAction


class HistoryLogResponse(BaseModel):
    id: str
    asset_id: str
    asset_name: str
    code_id: str
    action: HistoryAction
    details: str
    user_id: str
    user_display_name: str
    timestamp: datetime

    model_config = {"from_attributes": True}
