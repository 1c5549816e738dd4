"""
Browser views: home, drive listing and per-spreadsheet page.

Mutations are plain form posts answered with a redirect back to the view;
the outcome travels in the ``notice`` / ``notice_type`` query parameters and
is shown as a dismissible banner.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse

from auth.dependencies import get_current_session_optional
from auth.session import SessionData
from config import config
from errors import SheetDeskError
from routers.drive import get_drive_service
from routers.sheets import get_sheets_service
from schemas.patients import NewPatient
from services.google_drive_service import GoogleDriveService
from services.google_sheets_service import GoogleSheetsService
from services.patient_service import add_patient
from services.sheet_view_service import (
    choose_active_sheet,
    delete_index_for,
    filter_rows,
    split_header,
    update_row_number_for,
)
from utils.structured_logging import sheets_logger
from utils.templating import NOTICE_TYPES, templates

router = APIRouter(tags=["pages"], include_in_schema=False)

MISSING_TOKEN_MESSAGE = "Access token is missing. Please sign in again."


def _redirect(path: str, notice: Optional[str] = None, notice_type: str = "success", **params) -> RedirectResponse:
    query = {k: v for k, v in params.items() if v not in (None, "")}
    if notice:
        query["notice"] = notice
        query["notice_type"] = notice_type
    url = f"{path}?{urlencode(query)}" if query else path
    return RedirectResponse(url=url, status_code=303)


def _notice(request: Request) -> Optional[Dict[str, str]]:
    message = request.query_params.get("notice")
    if not message:
        return None
    notice_type = request.query_params.get("notice_type", "info")
    return {"message": message, "type": notice_type if notice_type in NOTICE_TYPES else "info"}


def _signin_redirect() -> RedirectResponse:
    return RedirectResponse(url="/auth/signin", status_code=303)


def _token(session: SessionData) -> Optional[str]:
    return session.access_token


@router.get("/", response_class=HTMLResponse)
def home(request: Request, session: Optional[SessionData] = Depends(get_current_session_optional)):
    return templates.TemplateResponse(request, "home.html", {"session": session})


@router.get("/privacy", response_class=HTMLResponse)
def privacy(request: Request, session: Optional[SessionData] = Depends(get_current_session_optional)):
    return templates.TemplateResponse(request, "privacy.html", {"session": session})


# --- Drive listing ---

@router.get("/drive", response_class=HTMLResponse)
def drive_page(
    request: Request,
    session: Optional[SessionData] = Depends(get_current_session_optional),
    drive_service: GoogleDriveService = Depends(get_drive_service),
):
    if session is None:
        return _signin_redirect()

    files: List[Dict[str, Any]] = []
    error = None
    last_refreshed = None

    if not session.has_access_token:
        error = MISSING_TOKEN_MESSAGE
    else:
        try:
            files = drive_service.list_files(_token(session))
            last_refreshed = datetime.now().strftime("%H:%M:%S")
        except SheetDeskError:
            error = "Failed to load files from Google Drive."

    return templates.TemplateResponse(
        request,
        "drive.html",
        {
            "session": session,
            "files": files,
            "error": error,
            "last_refreshed": last_refreshed,
            "notice": _notice(request),
        },
    )


@router.post("/drive/upload")
async def drive_upload(
    file: UploadFile = File(...),
    session: Optional[SessionData] = Depends(get_current_session_optional),
    drive_service: GoogleDriveService = Depends(get_drive_service),
):
    if session is None:
        return _signin_redirect()

    content = await file.read()
    try:
        drive_service.upload_file(
            _token(session),
            file_content=content,
            name=file.filename,
            mime_type=file.content_type or "application/octet-stream",
        )
    except SheetDeskError:
        return _redirect("/drive", "Failed to upload file to Google Drive.", "error")

    return _redirect("/drive", f"Uploaded {file.filename}")


# --- Spreadsheet view ---

@router.get("/file/{file_id}", response_class=HTMLResponse)
def file_page(
    request: Request,
    file_id: str,
    sheet: Optional[str] = None,
    q: Optional[str] = None,
    edit: Optional[int] = None,
    confirm_delete: Optional[int] = None,
    add: bool = False,
    session: Optional[SessionData] = Depends(get_current_session_optional),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    if session is None:
        return _signin_redirect()

    context: Dict[str, Any] = {
        "session": session,
        "file_id": file_id,
        "notice": _notice(request),
        "search": q or "",
    }

    try:
        sheets = sheets_service.get_available_sheets(_token(session), file_id)
        active_sheet = choose_active_sheet(sheets, sheet, config.DEFAULT_SHEET_TITLE)
        values = (
            sheets_service.fetch_sheet_data(_token(session), file_id, active_sheet)
            if active_sheet else []
        )
    except SheetDeskError as e:
        context["error"] = str(e) or "Failed to load spreadsheet data"
        return templates.TemplateResponse(request, "file.html", context)

    header, rows = split_header(values)
    matches = filter_rows(rows, q)

    edit_row = rows[edit] if edit is not None and 0 <= edit < len(rows) else None
    delete_row = rows[confirm_delete] if confirm_delete is not None and 0 <= confirm_delete < len(rows) else None

    context.update({
        "sheets": sheets,
        "active_sheet": active_sheet,
        "header": header,
        "has_data": bool(values),
        "matches": matches,
        "edit_index": edit if edit_row is not None else None,
        "edit_row": edit_row,
        "delete_index": confirm_delete if delete_row is not None else None,
        "delete_row": delete_row,
        "show_add": add,
        "new_patient": NewPatient(),
    })
    return templates.TemplateResponse(request, "file.html", context)


@router.post("/file/{file_id}/rows/{row_index}/edit")
def file_edit_row(
    file_id: str,
    row_index: int,
    sheet: str = Form(...),
    values: List[str] = Form(default=[]),
    q: Optional[str] = Form(None),
    session: Optional[SessionData] = Depends(get_current_session_optional),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    if session is None:
        return _signin_redirect()

    path = f"/file/{file_id}"
    try:
        sheets_service.update_sheet_row(
            _token(session), file_id, sheet, update_row_number_for(row_index), values
        )
    except SheetDeskError as e:
        return _redirect(path, f"Failed to update: {e}", "error", sheet=sheet, q=q)

    return _redirect(path, "Row updated successfully", sheet=sheet, q=q)


@router.post("/file/{file_id}/rows/{row_index}/delete")
def file_delete_row(
    file_id: str,
    row_index: int,
    sheet: str = Form(...),
    q: Optional[str] = Form(None),
    session: Optional[SessionData] = Depends(get_current_session_optional),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    if session is None:
        return _signin_redirect()

    path = f"/file/{file_id}"
    try:
        sheets_service.delete_sheet_row(_token(session), file_id, sheet, delete_index_for(row_index))
    except SheetDeskError as e:
        return _redirect(path, str(e) or "Failed to delete row", "error", sheet=sheet, q=q)

    return _redirect(path, "Row deleted successfully", sheet=sheet, q=q)


@router.post("/file/{file_id}/patients")
async def file_add_patient(
    request: Request,
    file_id: str,
    session: Optional[SessionData] = Depends(get_current_session_optional),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    if session is None:
        return _signin_redirect()

    form_data = await request.form()
    form = NewPatient(**{
        name: str(form_data.get(name))
        for name in NewPatient.model_fields
        if form_data.get(name) is not None
    })
    sheet = form_data.get("sheet") or None
    path = f"/file/{file_id}"

    try:
        result = add_patient(sheets_service, _token(session), file_id, form)
    except SheetDeskError as e:
        return _redirect(path, str(e), "error", sheet=sheet)

    sheets_logger.info(
        action="add_patient",
        message=f"Patient {result.patient_id} added",
        file_id=file_id,
        sheets_written=result.sheets_written,
    )
    return _redirect(path, result.message, sheet=sheet)
