from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from stockaudit.models.shared.enums import ResultStatus

class ReconciliationRow(BaseModel):
    code: str
    status: ResultStatus
    observed_quantity: int
    expected_quantity: int
    display_name: str = ""

class CountResult(ReconciliationRow):
    id: int
    count_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
