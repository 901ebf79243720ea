"""
Google Sheets API Client for Formsheets

Server-side access to the target spreadsheet for:
- Probing and writing the header row of a tab
- Creating tabs and formatting their header row
- Appending submission rows

Authenticates with bearer tokens issued by a ``TokenProvider``. Calls are
never retried here; a failed call surfaces as ``RemoteError``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from formsheets.services.config import DEFAULT_SHEETS_API_BASE
from formsheets.services.errors import RemoteError
from formsheets.services.google_token import TokenProvider

logger = logging.getLogger(__name__)

HEADER_PROBE_END_COLUMN = "AZ"

HEADER_FORMAT = {
    "backgroundColor": {"red": 0.2, "green": 0.4, "blue": 0.8},
    "textFormat": {
        "bold": True,
        "foregroundColor": {"red": 1, "green": 1, "blue": 1},
    },
}


def column_letter(index: int) -> str:
    """1-based column number to its A1 letter (1 -> A, 27 -> AA)."""
    if index < 1:
        raise ValueError("Column index must be >= 1")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


@dataclass
class SheetRange:
    """Represents a range of cells."""
    sheet_name: str
    start_col: str
    start_row: Optional[int] = None
    end_col: Optional[str] = None
    end_row: Optional[int] = None

    def to_a1(self) -> str:
        """Convert to A1 notation."""
        escaped = self.sheet_name.replace("'", "''")
        start = f"{self.start_col}{self.start_row or ''}"
        if self.end_col:
            return f"'{escaped}'!{start}:{self.end_col}{self.end_row or ''}"
        return f"'{escaped}'!{start}"


@dataclass(frozen=True)
class AppendResult:
    """Outcome of a row append."""
    updated_range: str
    updated_rows: int = 0


def _error_message(response: httpx.Response) -> str:
    """Human readable message from a Google error body, else the HTTP status."""
    try:
        body = response.json()
        message = body.get("error", {}).get("message")
        if message:
            return str(message)
    except (ValueError, AttributeError):
        pass
    return f"HTTP {response.status_code}"


def _json_body(response: httpx.Response, operation: str) -> Dict[str, Any]:
    """Decoded body of a successful response; an empty body reads as {}."""
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError as exc:
        raise RemoteError(
            operation,
            "invalid JSON response",
            status_code=response.status_code,
            detail=response.text[:1000] or None,
        ) from exc
    if not isinstance(body, dict):
        raise RemoteError(operation, "invalid JSON response", status_code=response.status_code)
    return body


def _is_missing_sheet(response: httpx.Response) -> bool:
    if response.status_code == 404:
        return True
    return response.status_code == 400 and "Unable to parse range" in _error_message(response)


class SheetsAPIClient:
    """
    Google Sheets API client bound to a single spreadsheet.

    Usage:
        client = SheetsAPIClient(spreadsheet_id, token_provider)
        header = await client.get_header_row("Contact Submissions")
        result = await client.append_row("Contact Submissions", columns, row)
    """

    def __init__(
        self,
        spreadsheet_id: str,
        token_provider: TokenProvider,
        api_base: str = DEFAULT_SHEETS_API_BASE,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.token_provider = token_provider
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def spreadsheet_url(self) -> str:
        return f"{self.api_base}/{self.spreadsheet_id}"

    def _values_url(self, sheet_range: SheetRange, suffix: str = "") -> str:
        return f"{self.spreadsheet_url}/values/{quote(sheet_range.to_a1(), safe='')}{suffix}"

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        json_data: Optional[Dict] = None,
        params: Optional[Dict] = None
    ) -> httpx.Response:
        """Make authenticated API request."""
        token = await self.token_provider.get_access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, json=json_data, params=params)
        except httpx.TimeoutException as exc:
            raise RemoteError(operation, f"request timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise RemoteError(operation, f"request failed: {exc}") from exc

        if response.status_code == 401:
            # Force a fresh exchange on the next call; this call still fails.
            self.token_provider.invalidate()
        return response

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        message = _error_message(response)
        logger.error("Sheets %s failed with HTTP %s: %s", operation, response.status_code, message)
        raise RemoteError(
            operation,
            message,
            status_code=response.status_code,
            detail=response.text[:1000] or None,
        )

    # ==================== READ OPERATIONS ====================

    async def get_header_row(self, sheet_name: str) -> Optional[List[str]]:
        """
        Read row 1 of a tab.

        Returns:
            The header cells (empty list when the tab has no header yet),
            or None when the tab does not exist.
        """
        sheet_range = SheetRange(sheet_name, "A", 1, HEADER_PROBE_END_COLUMN, 1)
        response = await self._request("GET", self._values_url(sheet_range), "read_header")
        if _is_missing_sheet(response):
            return None
        self._raise_for_status(response, "read_header")

        values = _json_body(response, "read_header").get("values") or []
        if not values:
            return []
        return [str(cell) for cell in values[0]]

    async def get_sheet_id(self, sheet_name: str) -> Optional[int]:
        """Numeric id of the tab titled ``sheet_name``."""
        response = await self._request(
            "GET",
            self.spreadsheet_url,
            "read_metadata",
            params={"fields": "sheets.properties(sheetId,title)"},
        )
        self._raise_for_status(response, "read_metadata")

        for sheet in _json_body(response, "read_metadata").get("sheets", []):
            properties = sheet.get("properties", {})
            if properties.get("title") == sheet_name:
                return properties.get("sheetId")
        return None

    # ==================== SHEET MANAGEMENT ====================

    async def add_sheet(self, sheet_name: str) -> Optional[int]:
        """
        Create a tab and return its sheet id.

        A tab created concurrently by another request is not an error: the
        existing tab's id is returned instead.
        """
        body = {"requests": [{"addSheet": {"properties": {"title": sheet_name}}}]}
        response = await self._request(
            "POST", f"{self.spreadsheet_url}:batchUpdate", "create_sheet", json_data=body
        )

        if response.status_code == 400 and "already exists" in _error_message(response):
            logger.info("Sheet %r already exists, reusing it", sheet_name)
            return await self.get_sheet_id(sheet_name)
        self._raise_for_status(response, "create_sheet")

        logger.info("Created sheet %r", sheet_name)
        replies = _json_body(response, "create_sheet").get("replies") or [{}]
        properties = replies[0].get("addSheet", {}).get("properties", {})
        return properties.get("sheetId")

    # ==================== WRITE OPERATIONS ====================

    async def write_header(self, sheet_name: str, columns: Sequence[str]) -> Dict[str, Any]:
        """Overwrite row 1 of a tab with ``columns``."""
        sheet_range = SheetRange(sheet_name, "A", 1, column_letter(len(columns)), 1)
        response = await self._request(
            "PUT",
            self._values_url(sheet_range),
            "write_header",
            json_data={"values": [list(columns)]},
            params={"valueInputOption": "RAW"},
        )
        self._raise_for_status(response, "write_header")
        return _json_body(response, "write_header")

    async def format_header(self, sheet_id: int, column_count: int) -> None:
        """Bold white-on-blue styling for row 1 of the tab with id ``sheet_id``."""
        body = {
            "requests": [{
                "repeatCell": {
                    "range": {
                        "sheetId": sheet_id,
                        "startRowIndex": 0,
                        "endRowIndex": 1,
                        "startColumnIndex": 0,
                        "endColumnIndex": column_count,
                    },
                    "cell": {"userEnteredFormat": HEADER_FORMAT},
                    "fields": "userEnteredFormat(backgroundColor,textFormat)",
                }
            }]
        }
        response = await self._request(
            "POST", f"{self.spreadsheet_url}:batchUpdate", "format_header", json_data=body
        )
        self._raise_for_status(response, "format_header")

    async def append_row(
        self,
        sheet_name: str,
        columns: Sequence[str],
        row: Sequence[str]
    ) -> AppendResult:
        """
        Append one row below the last row of the tab.

        Args:
            sheet_name: The tab name
            columns: The tab's header, used to bound the target range
            row: Cell values, one per column

        Returns:
            AppendResult with the range Google reports as written
        """
        sheet_range = SheetRange(sheet_name, "A", end_col=column_letter(max(len(columns), 1)))
        response = await self._request(
            "POST",
            self._values_url(sheet_range, ":append"),
            "append",
            json_data={"values": [list(row)]},
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
        )
        self._raise_for_status(response, "append")

        updates = _json_body(response, "append").get("updates", {})
        return AppendResult(
            updated_range=updates.get("updatedRange", ""),
            updated_rows=int(updates.get("updatedRows", 0) or 0),
        )
