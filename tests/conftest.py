import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from formsheets.services.credentials import load_service_account_credential
from formsheets.services.google_token import TokenProvider
from formsheets.services.sheets_api import SheetsAPIClient, column_letter

SPREADSHEET_ID = "sheet-123"
TOKEN_URI = "https://oauth2.googleapis.com/token"
CLIENT_EMAIL = "forms@example-project.iam.gserviceaccount.com"


class FakeGoogle:
    """Token endpoint and a single spreadsheet, served from memory."""

    def __init__(self) -> None:
        self.tabs: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []
        self.requests: List[httpx.Request] = []
        self.formatted: List[Dict[str, Any]] = []
        self.failures: Dict[str, httpx.Response] = {}
        self._next_sheet_id = 100
        self.transport = httpx.MockTransport(self.handle)

    def add_tab(self, title: str, header: Optional[List[str]] = None) -> int:
        sheet_id = self._next_sheet_id
        self._next_sheet_id += 1
        self.tabs[title] = {"sheetId": sheet_id, "header": list(header or []), "rows": []}
        return sheet_id

    def fail(self, operation: str, status_code: int, message: Optional[str] = None, text: Optional[str] = None) -> None:
        if message is not None:
            self.failures[operation] = httpx.Response(
                status_code, json={"error": {"code": status_code, "message": message}}
            )
        else:
            self.failures[operation] = httpx.Response(status_code, text=text or "")

    def count(self, operation: str) -> int:
        return self.calls.count(operation)

    def handle(self, request: httpx.Request) -> httpx.Response:
        operation = self._operation(request)
        self.calls.append(operation)
        self.requests.append(request)
        if operation in self.failures:
            return self.failures[operation]
        return getattr(self, f"_{operation}")(request)

    def _operation(self, request: httpx.Request) -> str:
        path = request.url.path
        if request.url.host == "oauth2.googleapis.com":
            return "token"
        if path.endswith(":batchUpdate"):
            body = json.loads(request.content)
            kind = next(iter(body["requests"][0]))
            return "add_sheet" if kind == "addSheet" else "format_header"
        if path.endswith(":append"):
            return "append"
        if "/values/" in path:
            return "write_header" if request.method == "PUT" else "read_header"
        return "metadata"

    @staticmethod
    def _title(request: httpx.Request) -> str:
        a1 = request.url.path.split("/values/", 1)[1]
        quoted = a1.rsplit("!", 1)[0]
        return quoted[1:-1].replace("''", "'")

    def _token(self, request: httpx.Request) -> httpx.Response:
        issued = self.count("token")
        return httpx.Response(
            200, json={"access_token": f"token-{issued}", "expires_in": 3600, "token_type": "Bearer"}
        )

    def _read_header(self, request: httpx.Request) -> httpx.Response:
        title = self._title(request)
        tab = self.tabs.get(title)
        if tab is None:
            return httpx.Response(
                400,
                json={"error": {"code": 400, "message": f"Unable to parse range: '{title}'!A1:AZ1"}},
            )
        if not tab["header"]:
            return httpx.Response(200, json={"range": f"'{title}'!A1:AZ1", "majorDimension": "ROWS"})
        return httpx.Response(
            200, json={"range": f"'{title}'!A1:AZ1", "majorDimension": "ROWS", "values": [tab["header"]]}
        )

    def _add_sheet(self, request: httpx.Request) -> httpx.Response:
        title = json.loads(request.content)["requests"][0]["addSheet"]["properties"]["title"]
        if title in self.tabs:
            return httpx.Response(
                400,
                json={"error": {
                    "code": 400,
                    "message": f'Invalid requests[0].addSheet: A sheet with the name "{title}" already exists.',
                }},
            )
        sheet_id = self.add_tab(title)
        return httpx.Response(
            200,
            json={
                "spreadsheetId": SPREADSHEET_ID,
                "replies": [{"addSheet": {"properties": {"sheetId": sheet_id, "title": title}}}],
            },
        )

    def _format_header(self, request: httpx.Request) -> httpx.Response:
        self.formatted.append(json.loads(request.content)["requests"][0]["repeatCell"])
        return httpx.Response(200, json={"spreadsheetId": SPREADSHEET_ID, "replies": [{}]})

    def _metadata(self, request: httpx.Request) -> httpx.Response:
        sheets = [
            {"properties": {"sheetId": tab["sheetId"], "title": title}}
            for title, tab in self.tabs.items()
        ]
        return httpx.Response(200, json={"sheets": sheets})

    def _write_header(self, request: httpx.Request) -> httpx.Response:
        title = self._title(request)
        values = json.loads(request.content)["values"][0]
        self.tabs.setdefault(title, {"sheetId": None, "header": [], "rows": []})["header"] = values
        return httpx.Response(200, json={"updatedRange": f"'{title}'!A1", "updatedCells": len(values)})

    def _append(self, request: httpx.Request) -> httpx.Response:
        title = self._title(request)
        tab = self.tabs.get(title)
        if tab is None:
            return httpx.Response(400, json={"error": {"code": 400, "message": f"Unable to parse range: {title}"}})
        values = json.loads(request.content)["values"][0]
        tab["rows"].append(values)
        row_number = len(tab["rows"]) + 1
        updated = f"'{title}'!A{row_number}:{column_letter(len(values))}{row_number}"
        return httpx.Response(
            200,
            json={"spreadsheetId": SPREADSHEET_ID, "updates": {"updatedRange": updated, "updatedRows": 1}},
        )


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@pytest.fixture()
def service_account_json(private_key_pem) -> str:
    return json.dumps({
        "type": "service_account",
        "project_id": "example-project",
        "client_email": CLIENT_EMAIL,
        "private_key": private_key_pem,
        "token_uri": TOKEN_URI,
    })


@pytest.fixture()
def credential(service_account_json):
    return load_service_account_credential(service_account_json)


@pytest.fixture()
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture()
def token_provider(credential, fake_google) -> TokenProvider:
    return TokenProvider(credential, transport=fake_google.transport)


@pytest.fixture()
def sheets_client(token_provider, fake_google) -> SheetsAPIClient:
    return SheetsAPIClient(SPREADSHEET_ID, token_provider, transport=fake_google.transport)
