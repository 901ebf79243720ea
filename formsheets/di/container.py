"""Dependency injection container for core services."""
from typing import Optional

from formsheets.services.config import SheetsConfig, validate_sheets_config
from formsheets.services.credentials import load_service_account_credential
from formsheets.services.google_token import SHEETS_SCOPE, TokenProvider
from formsheets.services.ingestion import SubmissionIngestionService
from formsheets.services.row_formatter import RowFormatter
from formsheets.services.schema_registry import SchemaRegistry
from formsheets.services.sheet_provisioner import SheetProvisioner
from formsheets.services.sheets_api import SheetsAPIClient
from formsheets.services.sync_log import SyncLogger, SyncLogStore


class ServiceContainer:
    def __init__(self, config: Optional[SheetsConfig] = None) -> None:
        self._config = config
        self._tokens = None
        self._sheets = None
        self._registry = None
        self._formatter = None
        self._sync_store = None
        self._sync_logger = None
        self._ingestion = None

    def config(self) -> SheetsConfig:
        if not self._config:
            self._config = validate_sheets_config()
        return self._config

    def tokens(self) -> TokenProvider:
        if not self._tokens:
            config = self.config()
            credential = load_service_account_credential(config.credentials_json)
            self._tokens = TokenProvider(credential, SHEETS_SCOPE, timeout=config.request_timeout)
        return self._tokens

    def sheets(self) -> SheetsAPIClient:
        if not self._sheets:
            config = self.config()
            self._sheets = SheetsAPIClient(
                spreadsheet_id=config.spreadsheet_id,
                token_provider=self.tokens(),
                api_base=config.sheets_api_base,
                timeout=config.request_timeout,
            )
        return self._sheets

    def registry(self) -> SchemaRegistry:
        if not self._registry:
            self._registry = SchemaRegistry()
        return self._registry

    def formatter(self) -> RowFormatter:
        if not self._formatter:
            self._formatter = RowFormatter()
        return self._formatter

    def sync_store(self) -> SyncLogStore:
        if not self._sync_store:
            self._sync_store = SyncLogStore()
        return self._sync_store

    def sync_logger(self) -> SyncLogger:
        if not self._sync_logger:
            self._sync_logger = SyncLogger(self.sync_store())
        return self._sync_logger

    def ingestion(self) -> SubmissionIngestionService:
        if not self._ingestion:
            self._ingestion = SubmissionIngestionService(
                registry=self.registry(),
                formatter=self.formatter(),
                provisioner=SheetProvisioner(self.sheets()),
                sheets=self.sheets(),
                sync_logger=self.sync_logger(),
            )
        return self._ingestion


container = ServiceContainer()
