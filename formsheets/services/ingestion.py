"""
Submission ingestion: one form submission in, one spreadsheet row out.

Flow per submission:
    lookup mapping -> ensure tab + header -> format row -> append -> audit log

Form types without a mapping are never rejected. They are written as a
two-column ``[timestamp, json]`` row to a tab named after the form type.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from formsheets.services.errors import AuthError, RemoteError
from formsheets.services.logging import log_ingestion
from formsheets.services.metrics import record_ingestion
from formsheets.services.row_formatter import RowFormatter
from formsheets.services.schema_registry import FALLBACK_COLUMNS, SchemaRegistry, fallback_sheet_name
from formsheets.services.sheet_provisioner import SheetProvisioner
from formsheets.services.sheets_api import SheetsAPIClient
from formsheets.services.sync_log import SyncLogEntry, SyncLogger, SyncStatus, payload_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionResult:
    """What was written for one submission."""
    sheet_name: str
    columns_written: int
    updated_range: str
    mapped: bool = True

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "sheetName": self.sheet_name,
            "columnsWritten": self.columns_written,
            "updatedRange": self.updated_range,
        }


@dataclass(frozen=True)
class WritePlan:
    sheet_name: str
    columns: Sequence[str]
    row: List[str]
    mapped: bool


class SubmissionIngestionService:
    """Writes form submissions to their spreadsheet tab and audits the outcome."""

    def __init__(
        self,
        registry: SchemaRegistry,
        formatter: RowFormatter,
        provisioner: SheetProvisioner,
        sheets: SheetsAPIClient,
        sync_logger: SyncLogger,
    ):
        self.registry = registry
        self.formatter = formatter
        self.provisioner = provisioner
        self.sheets = sheets
        self.sync_logger = sync_logger

    def plan(self, form_type: str, payload: Optional[Mapping[str, Any]]) -> WritePlan:
        mapping = self.registry.lookup(form_type)
        if mapping is None:
            logger.warning("No mapping found for table: %s, using fallback format", form_type)
            return WritePlan(
                sheet_name=fallback_sheet_name(form_type),
                columns=FALLBACK_COLUMNS,
                row=self.formatter.format_fallback(payload),
                mapped=False,
            )
        return WritePlan(
            sheet_name=mapping.sheet_name,
            columns=mapping.columns,
            row=self.formatter.format(payload, mapping.columns),
            mapped=True,
        )

    async def ingest(self, form_type: str, payload: Optional[Mapping[str, Any]]) -> IngestionResult:
        """
        Append ``payload`` to the tab for ``form_type``.

        Raises:
            AuthError: token exchange failed
            RemoteError: the Sheets API rejected or did not answer a call
        """
        started = time.time()
        plan = self.plan(form_type, payload)
        fingerprint = payload_hash(payload)

        try:
            await self.provisioner.ensure_headers(plan.sheet_name, plan.columns)
            append = await self.sheets.append_row(plan.sheet_name, plan.columns, plan.row)
        except (AuthError, RemoteError) as exc:
            duration_ms = (time.time() - started) * 1000
            log_ingestion(form_type, plan.sheet_name, SyncStatus.ERROR.value, duration_ms, error=exc.message)
            record_ingestion(form_type, SyncStatus.ERROR.value)
            self.sync_logger.record(SyncLogEntry(
                form_type=form_type,
                sheet_name=plan.sheet_name,
                row_count=0,
                status=SyncStatus.ERROR,
                error_message=exc.message,
                data_hash=fingerprint,
            ))
            raise

        duration_ms = (time.time() - started) * 1000
        log_ingestion(form_type, plan.sheet_name, SyncStatus.SUCCESS.value, duration_ms, len(plan.row))
        record_ingestion(form_type, SyncStatus.SUCCESS.value)
        self.sync_logger.record(SyncLogEntry(
            form_type=form_type,
            sheet_name=plan.sheet_name,
            row_count=1,
            status=SyncStatus.SUCCESS,
            data_hash=fingerprint,
        ))

        return IngestionResult(
            sheet_name=plan.sheet_name,
            columns_written=len(plan.row),
            updated_range=append.updated_range,
            mapped=plan.mapped,
        )
