from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from formsheets.models.base import FSBaseModel


class SubmissionRequest(FSBaseModel):
    # Form clients send extra bookkeeping keys next to tableName/data.
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, populate_by_name=True)

    table_name: str = Field(..., alias="tableName", min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)


class SubmissionResponse(FSBaseModel):
    success: bool = True
    sheet_name: str = Field(..., alias="sheetName")
    columns_written: int = Field(..., alias="columnsWritten")
    updated_range: str = Field(..., alias="updatedRange")


class ErrorResponse(FSBaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None


class SyncLogRecord(FSBaseModel):
    table_name: str
    sheet_name: str
    row_count: int = 0
    status: str
    error_message: Optional[str] = None
    sync_timestamp: str
    data_hash: Optional[str] = None


class SyncLogResponse(FSBaseModel):
    entries: List[SyncLogRecord] = Field(default_factory=list)
    count: int = 0
