"""
Environment configuration for the Sheets ingestion service.

Values are read from the process environment once at startup and kept
in an immutable ``SheetsConfig``.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from formsheets.services.errors import ConfigurationError

DEFAULT_SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class SheetsConfig:
    """Target spreadsheet and credential source."""
    spreadsheet_id: str
    credentials_json: str
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    sheets_api_base: str = DEFAULT_SHEETS_API_BASE


def _read_credentials_blob() -> Optional[str]:
    inline = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "").strip()
    if inline:
        return inline

    path = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "").strip()
    if not path:
        return None
    try:
        return Path(path).expanduser().read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ConfigurationError(
            f"Could not read GOOGLE_SERVICE_ACCOUNT_FILE ({path}): {exc}",
            field="GOOGLE_SERVICE_ACCOUNT_FILE",
        ) from exc


def _read_timeout() -> float:
    raw = os.getenv("SHEETS_REQUEST_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"SHEETS_REQUEST_TIMEOUT must be a number, got {raw!r}",
            field="SHEETS_REQUEST_TIMEOUT",
        ) from exc
    if timeout <= 0:
        raise ConfigurationError(
            "SHEETS_REQUEST_TIMEOUT must be positive",
            field="SHEETS_REQUEST_TIMEOUT",
        )
    return timeout


def validate_sheets_config() -> SheetsConfig:
    """Validate Sheets env config and return it."""
    spreadsheet_id = os.getenv("GOOGLE_SHEET_ID", "").strip()
    credentials_json = _read_credentials_blob()

    missing: List[str] = []
    if not spreadsheet_id:
        missing.append("GOOGLE_SHEET_ID")
    if not credentials_json:
        missing.append("GOOGLE_SERVICE_ACCOUNT_JSON (or GOOGLE_SERVICE_ACCOUNT_FILE)")
    if missing:
        raise ConfigurationError(
            "Missing "
            + ", ".join(missing)
            + ". Set these env vars and restart the service."
        )

    base = os.getenv("SHEETS_API_BASE", DEFAULT_SHEETS_API_BASE).strip().rstrip("/")
    return SheetsConfig(
        spreadsheet_id=spreadsheet_id,
        credentials_json=credentials_json,
        request_timeout=_read_timeout(),
        sheets_api_base=base or DEFAULT_SHEETS_API_BASE,
    )
