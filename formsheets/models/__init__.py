from formsheets.models.base import FSBaseModel
from formsheets.models.submissions import (
    ErrorResponse,
    SubmissionRequest,
    SubmissionResponse,
    SyncLogRecord,
    SyncLogResponse,
)
