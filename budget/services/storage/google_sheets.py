"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the optional primary tier because
the user can open the spreadsheet and see their accounts and
transactions without any tooling, and Google keeps the backup.

Each collection gets its own worksheet with three columns:
key | record (JSON) | updated_at

Keeping the whole record in one JSON cell means the sheet layout never
has to change when a model gains a field.

TRADEOFFS:
- Every write reads the key column first (fine for personal volumes)
- No transactions; a cascade delete is a sequence of row deletions
"""

import json
from datetime import datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budget.config import GoogleSheetsSettings, get_settings
from budget.services.storage.interface import (
    ConnectionError,
    RecordStore,
    StorageError,
    key_field,
    record_key,
)


SHEET_COLUMNS = ["key", "record", "updated_at"]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
        self._worksheets: dict[str, gspread.Worksheet] = {}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except ValueError as e:
                raise ConnectionError(f"Invalid Google credentials: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet that holds a collection."""
        if collection in self._worksheets:
            return self._worksheets[collection]

        title = self._settings.sheet_name_for(collection)
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(SHEET_COLUMNS),
            )
            sheet.append_row(SHEET_COLUMNS)

        self._worksheets[collection] = sheet
        return sheet

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        reraise=True,
    )
    def get_rows(self, collection: str) -> list[list[str]]:
        """All data rows of a collection's worksheet (header excluded)."""
        return self.get_sheet(collection).get_all_values()[1:]


class GoogleSheetsStore(RecordStore):
    """
    Google Sheets implementation of the record store.

    Row 1 of every worksheet is the header; records start at row 2.
    Rows whose JSON cell can't be parsed are skipped on load.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, collection: str, record: dict) -> list:
        """Convert a record to a spreadsheet row."""
        return [
            record_key(collection, record),
            json.dumps(record, ensure_ascii=False),
            datetime.utcnow().isoformat(),
        ]

    def _find_row(self, sheet: gspread.Worksheet, key: str) -> Optional[int]:
        """1-based row index of a key, or None."""
        keys = sheet.col_values(1)
        for idx, value in enumerate(keys[1:], start=2):
            if value == key:
                return idx
        return None

    async def load_all(self, collection: str) -> list[dict]:
        """Load every record of a collection."""
        key_field(collection)
        try:
            all_rows = self._client.get_rows(collection)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load {collection}: {e}")

        records = []
        for row in all_rows:
            if len(row) < 2 or not row[0] or not row[1]:
                continue
            try:
                record = json.loads(row[1])
            except json.JSONDecodeError:
                continue
            if isinstance(record, dict):
                records.append(record)
        return records

    async def put(self, collection: str, record: dict) -> None:
        """Insert a record, or replace the row with the same key."""
        key = record_key(collection, record)
        try:
            sheet = self._client.get_sheet(collection)
            row = self._record_to_row(collection, record)
            idx = self._find_row(sheet, key)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {collection} record {key}: {e}")

    async def delete(self, collection: str, key: str) -> bool:
        """Delete a record by key."""
        try:
            sheet = self._client.get_sheet(collection)
            idx = self._find_row(sheet, str(key))
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {collection} record {key}: {e}")

    async def clear(self, collection: str) -> None:
        """Clear a worksheet back to its header row."""
        key_field(collection)
        try:
            sheet = self._client.get_sheet(collection)
            sheet.clear()
            sheet.append_row(SHEET_COLUMNS)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear {collection}: {e}")
