"""Make sure a destination tab exists and carries the expected header row."""
import logging
from typing import Optional, Sequence

from formsheets.services.errors import RemoteError
from formsheets.services.sheets_api import SheetsAPIClient

logger = logging.getLogger(__name__)


class SheetProvisioner:
    """
    Creates missing tabs and repairs header rows before data is appended.

    Safe to call on every request: when the header already matches, the only
    API traffic is a single read.
    """

    def __init__(self, client: SheetsAPIClient):
        self.client = client

    async def ensure_headers(self, sheet_name: str, columns: Sequence[str]) -> bool:
        """
        Ensure ``sheet_name`` exists with ``columns`` as its first row.

        Returns:
            True when the header row was (re)written, False when it already matched.

        Raises:
            RemoteError: if reading, creating or writing the tab fails.
        """
        expected = list(columns)
        sheet_id: Optional[int] = None

        existing = await self.client.get_header_row(sheet_name)
        if existing is None:
            logger.info("Creating new sheet: %s", sheet_name)
            sheet_id = await self.client.add_sheet(sheet_name)
            existing = []

        if existing == expected:
            return False

        logger.info("Setting headers for sheet: %s (%d columns)", sheet_name, len(expected))
        await self.client.write_header(sheet_name, expected)
        await self._format_header(sheet_name, sheet_id, len(expected))
        return True

    async def _format_header(self, sheet_name: str, sheet_id: Optional[int], column_count: int) -> None:
        # Styling is cosmetic: a failure here must not block the data write.
        try:
            if sheet_id is None:
                sheet_id = await self.client.get_sheet_id(sheet_name)
            if sheet_id is None:
                logger.warning("Could not resolve sheet id for %s; header left unformatted", sheet_name)
                return
            await self.client.format_header(sheet_id, column_count)
        except RemoteError as exc:
            logger.warning("Header formatting failed for %s: %s", sheet_name, exc.message)
