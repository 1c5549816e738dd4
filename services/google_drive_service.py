import io
from typing import Any, Callable, Dict, List, Optional

from googleapiclient.http import MediaIoBaseUpload

from config import config
from errors import MissingAccessTokenError
from services.google_api import execute_google_call
from services.google_auth import GoogleAuthService
from utils.structured_logging import drive_logger

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
LIST_FIELDS = "files(id,name,mimeType,webViewLink)"


def _default_builder(access_token: str):
    return GoogleAuthService(access_token).get_service("drive", "v3")


class GoogleDriveService:
    """
    Thin wrapper over the Drive v3 files endpoints, authorized with the
    signed-in user's bearer token.
    """

    def __init__(self, service_builder: Optional[Callable[[str], Any]] = None):
        self._build = service_builder or _default_builder

    def _service(self, access_token: Optional[str]):
        drive_logger.info(
            action="authorize",
            status="success" if access_token else "missing_token",
            message="Token exists" if access_token else "No token",
        )
        if not access_token:
            raise MissingAccessTokenError()
        return self._build(access_token)

    def list_files(self, access_token: Optional[str]) -> List[Dict[str, Any]]:
        """List non-trashed files and keep only Google Sheets."""
        service = self._service(access_token)

        def _api_call():
            return service.files().list(
                pageSize=config.DRIVE_LIST_PAGE_SIZE,
                fields=LIST_FIELDS,
                q="trashed=false",
            ).execute()

        results = execute_google_call(
            "drive",
            "list_files",
            _api_call,
            lambda status, reason: f"Failed to list files: {status} {reason}",
            drive_logger,
        )
        files = results.get("files", [])
        return [f for f in files if f.get("mimeType") == SPREADSHEET_MIME_TYPE]

    def upload_file(
        self,
        access_token: Optional[str],
        file_content: bytes,
        name: str,
        mime_type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        service = self._service(access_token)

        file_metadata = {"name": name, **(metadata or {})}
        media = MediaIoBaseUpload(
            io.BytesIO(file_content),
            mimetype=mime_type or "application/octet-stream",
            resumable=False,
        )

        def _api_call():
            return service.files().create(
                body=file_metadata,
                media_body=media,
                fields="id, name, mimeType, webViewLink",
            ).execute()

        return execute_google_call(
            "drive",
            "upload_file",
            _api_call,
            lambda status, reason: f"File upload failed: {status} {reason}",
            drive_logger,
            file_name=name,
        )

    def download_file(self, access_token: Optional[str], file_id: str) -> bytes:
        service = self._service(access_token)

        def _api_call():
            return service.files().get_media(fileId=file_id).execute()

        return execute_google_call(
            "drive",
            "download_file",
            _api_call,
            lambda status, reason: f"File download failed: {status} {reason}",
            drive_logger,
            file_id=file_id,
        )

    def delete_file(self, access_token: Optional[str], file_id: str) -> bool:
        service = self._service(access_token)

        def _api_call():
            return service.files().delete(fileId=file_id).execute()

        execute_google_call(
            "drive",
            "delete_file",
            _api_call,
            lambda status, reason: f"File deletion failed: {status} {reason}",
            drive_logger,
            file_id=file_id,
        )
        return True
