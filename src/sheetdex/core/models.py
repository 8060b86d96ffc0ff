import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("sheetdex.models")

# Typed cell value stored in DataRow.data_json: null, boolean, number or string.
CellValue = Union[None, bool, int, float, str]
RowData = Dict[str, CellValue]


class ImportStats(BaseModel):
    success: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return self.model_dump()


class ImportResult(BaseModel):
    """Outcome of importing one file."""
    path: str
    file_id: int
    sheets: int = 0
    rows: int = 0
    fingerprint: str = ""


class RowHit(BaseModel):
    id: int
    file_id: int
    file_name: Optional[str] = None
    sheet_name: str
    row_number: int
    import_time: datetime
    data_json: str
    search_text: str
    score: int = 0
    field_order: Optional[List[str]] = None

    @property
    def data(self) -> RowData:
        try:
            return json.loads(self.data_json)
        except ValueError as e:
            logger.debug("RowHit data parse error: %s", e)
            return {}


class SearchResponse(BaseModel):
    results: List[RowHit] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class StatsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)
    total_rows: int
    total_files: int
    last_update: datetime

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
