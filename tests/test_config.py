import pytest

from formsheets.services.config import DEFAULT_REQUEST_TIMEOUT, DEFAULT_SHEETS_API_BASE, validate_sheets_config
from formsheets.services.errors import ConfigurationError

ENV_VARS = (
    "GOOGLE_SHEET_ID",
    "GOOGLE_SERVICE_ACCOUNT_JSON",
    "GOOGLE_SERVICE_ACCOUNT_FILE",
    "SHEETS_REQUEST_TIMEOUT",
    "SHEETS_API_BASE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_config_names_every_variable():
    with pytest.raises(ConfigurationError) as exc:
        validate_sheets_config()
    assert "GOOGLE_SHEET_ID" in exc.value.detail
    assert "GOOGLE_SERVICE_ACCOUNT_JSON" in exc.value.detail


def test_inline_credentials_and_defaults(monkeypatch):
    monkeypatch.setenv("GOOGLE_SHEET_ID", " sheet-123 ")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_JSON", '{"client_email": "svc@example.com"}')

    config = validate_sheets_config()

    assert config.spreadsheet_id == "sheet-123"
    assert config.credentials_json == '{"client_email": "svc@example.com"}'
    assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT
    assert config.sheets_api_base == DEFAULT_SHEETS_API_BASE


def test_credentials_file_is_read(monkeypatch, tmp_path):
    key_file = tmp_path / "service-account.json"
    key_file.write_text('{"client_email": "svc@example.com"}', encoding="utf-8")
    monkeypatch.setenv("GOOGLE_SHEET_ID", "sheet-123")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_FILE", str(key_file))
    monkeypatch.setenv("SHEETS_API_BASE", "http://localhost:9000/v4/spreadsheets/")
    monkeypatch.setenv("SHEETS_REQUEST_TIMEOUT", "2.5")

    config = validate_sheets_config()

    assert "svc@example.com" in config.credentials_json
    assert config.sheets_api_base == "http://localhost:9000/v4/spreadsheets"
    assert config.request_timeout == 2.5


def test_unreadable_credentials_file(monkeypatch, tmp_path):
    monkeypatch.setenv("GOOGLE_SHEET_ID", "sheet-123")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_FILE", str(tmp_path / "missing.json"))

    with pytest.raises(ConfigurationError) as exc:
        validate_sheets_config()
    assert exc.value.context == {"field": "GOOGLE_SERVICE_ACCOUNT_FILE"}


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_bad_timeout_is_rejected(monkeypatch, value):
    monkeypatch.setenv("GOOGLE_SHEET_ID", "sheet-123")
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_JSON", "{}")
    monkeypatch.setenv("SHEETS_REQUEST_TIMEOUT", value)

    with pytest.raises(ConfigurationError):
        validate_sheets_config()
