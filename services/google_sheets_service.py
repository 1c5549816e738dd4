from typing import Any, Callable, Dict, List, Optional

from errors import MissingAccessTokenError, SheetNotFoundError
from schemas.sheets import SheetDescriptor
from services.google_api import execute_google_call
from services.google_auth import GoogleAuthService
from utils.structured_logging import sheets_logger

VALUE_INPUT_OPTION = "USER_ENTERED"


def _default_builder(access_token: str):
    return GoogleAuthService(access_token).get_service("sheets", "v4")


def a1_range(sheet_title: str, cell: Optional[str] = None) -> str:
    """Build an A1 range for a tab, quoting the title so spaces and quotes survive."""
    quoted = "'" + sheet_title.replace("'", "''") + "'"
    return f"{quoted}!{cell}" if cell else quoted


def sheets_from_metadata(metadata: Dict[str, Any]) -> List[SheetDescriptor]:
    return [
        SheetDescriptor(id=sheet["properties"]["sheetId"], title=sheet["properties"]["title"])
        for sheet in metadata.get("sheets", [])
    ]


def resolve_sheet_id(sheets: List[SheetDescriptor], sheet_title: str) -> int:
    """Return the numeric id of the tab titled ``sheet_title``."""
    for sheet in sheets:
        if sheet.title == sheet_title:
            return sheet.id
    raise SheetNotFoundError(sheet_title)


class GoogleSheetsService:
    """
    Wrapper over the Sheets v4 spreadsheet and values endpoints.

    Every method needs the user's access token and performs one request,
    except delete_sheet_row which first resolves the tab title to its
    numeric id. The two requests are independent: nothing is undone if the
    second one fails.
    """

    def __init__(self, service_builder: Optional[Callable[[str], Any]] = None):
        self._build = service_builder or _default_builder

    def _service(self, access_token: Optional[str]):
        if not access_token:
            sheets_logger.warning(action="authorize", status="missing_token", message="No token")
            raise MissingAccessTokenError()
        return self._build(access_token)

    def _metadata(self, service, file_id: str) -> Dict[str, Any]:
        def _api_call():
            return service.spreadsheets().get(spreadsheetId=file_id).execute()

        return execute_google_call(
            "sheets",
            "get_metadata",
            _api_call,
            lambda status, reason: f"Failed to get spreadsheet metadata: {status}",
            sheets_logger,
            file_id=file_id,
        )

    def get_available_sheets(self, access_token: Optional[str], file_id: str) -> List[SheetDescriptor]:
        service = self._service(access_token)
        return sheets_from_metadata(self._metadata(service, file_id))

    def fetch_sheet_data(self, access_token: Optional[str], file_id: str, sheet_title: str) -> List[List[str]]:
        service = self._service(access_token)

        def _api_call():
            return service.spreadsheets().values().get(
                spreadsheetId=file_id,
                range=a1_range(sheet_title),
            ).execute()

        data = execute_google_call(
            "sheets",
            "get_values",
            _api_call,
            lambda status, reason: f"Failed to get sheet data: {status}",
            sheets_logger,
            file_id=file_id,
            sheet=sheet_title,
        )
        return data.get("values", [])

    def add_data_to_sheet(
        self,
        access_token: Optional[str],
        file_id: str,
        sheet_name: str,
        row_data: List[str],
    ) -> Dict[str, Any]:
        service = self._service(access_token)

        def _api_call():
            return service.spreadsheets().values().append(
                spreadsheetId=file_id,
                range=a1_range(sheet_name),
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": [row_data]},
            ).execute()

        return execute_google_call(
            "sheets",
            "append_row",
            _api_call,
            lambda status, reason: f"Failed to add data to {sheet_name} sheet",
            sheets_logger,
            file_id=file_id,
            sheet=sheet_name,
        )

    def update_sheet_row(
        self,
        access_token: Optional[str],
        file_id: str,
        sheet_title: str,
        row_number: int,
        values: List[str],
    ) -> Dict[str, Any]:
        """Overwrite one row starting at column A. ``row_number`` is the 1-based sheet row."""
        service = self._service(access_token)

        def _api_call():
            return service.spreadsheets().values().update(
                spreadsheetId=file_id,
                range=a1_range(sheet_title, f"A{row_number}"),
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": [values]},
            ).execute()

        return execute_google_call(
            "sheets",
            "update_row",
            _api_call,
            lambda status, reason: f"Failed to update row: {status}",
            sheets_logger,
            file_id=file_id,
            sheet=sheet_title,
            row_number=row_number,
        )

    def delete_sheet_row(
        self,
        access_token: Optional[str],
        file_id: str,
        sheet_title: str,
        row_index: int,
    ) -> Dict[str, Any]:
        """Delete one row. ``row_index`` is the 0-based sheet index (header is 0)."""
        service = self._service(access_token)

        sheet_id = resolve_sheet_id(
            sheets_from_metadata(self._metadata(service, file_id)),
            sheet_title,
        )

        request = {
            "requests": [
                {
                    "deleteDimension": {
                        "range": {
                            "sheetId": sheet_id,
                            "dimension": "ROWS",
                            "startIndex": row_index,
                            "endIndex": row_index + 1,
                        }
                    }
                }
            ]
        }

        def _api_call():
            return service.spreadsheets().batchUpdate(spreadsheetId=file_id, body=request).execute()

        return execute_google_call(
            "sheets",
            "delete_row",
            _api_call,
            lambda status, reason: f"Failed to delete row: {status}",
            sheets_logger,
            file_id=file_id,
            sheet=sheet_title,
            row_index=row_index,
        )
