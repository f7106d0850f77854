from datetime import datetime
from typing import Any

from .common import CamelModel


class HistoryRecordResponse(CamelModel):
    id: int
    type: str
    entity_id: int
    changes: Any
    date: datetime
    user: str

    class Config:
        from_attributes = True
