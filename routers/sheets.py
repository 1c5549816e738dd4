from fastapi import APIRouter, Depends, Path, Query
from typing import Optional

from auth.dependencies import get_access_token
from config import config
from schemas.patients import AddPatientResult, NewPatient
from schemas.sheets import (
    RowMutationResponse,
    RowValues,
    SheetDataResponse,
    SheetTabsResponse,
)
from services.google_sheets_service import GoogleSheetsService
from services.patient_service import add_patient
from services.sheet_view_service import (
    choose_active_sheet,
    delete_index_for,
    filter_rows,
    split_header,
    update_row_number_for,
)

router = APIRouter(prefix="/sheets", tags=["sheets"])


def get_sheets_service():
    return GoogleSheetsService()


@router.get("/{file_id}/tabs", response_model=SheetTabsResponse)
def list_tabs(
    file_id: str,
    access_token: Optional[str] = Depends(get_access_token),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    sheets = sheets_service.get_available_sheets(access_token, file_id)
    return SheetTabsResponse(
        file_id=file_id,
        sheets=sheets,
        active_sheet=choose_active_sheet(sheets, default_title=config.DEFAULT_SHEET_TITLE),
    )


@router.get("/{file_id}/values/{sheet}", response_model=SheetDataResponse)
def get_values(
    file_id: str,
    sheet: str,
    q: Optional[str] = Query(None, description="Case-insensitive search across all cells"),
    access_token: Optional[str] = Depends(get_access_token),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    header, rows = split_header(sheets_service.fetch_sheet_data(access_token, file_id, sheet))
    matches = filter_rows(rows, q)
    return SheetDataResponse(
        sheet=sheet,
        header=header,
        rows=[row for _, row in matches],
        row_indices=[index for index, _ in matches],
        total=len(matches),
        search=q,
    )


@router.post("/{file_id}/values/{sheet}", response_model=RowMutationResponse, status_code=201)
def append_row(
    file_id: str,
    sheet: str,
    row: RowValues,
    access_token: Optional[str] = Depends(get_access_token),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    sheets_service.add_data_to_sheet(access_token, file_id, sheet, row.values)
    return RowMutationResponse(status="created", sheet=sheet, message="Row added successfully")


@router.put("/{file_id}/values/{sheet}/rows/{row_index}", response_model=RowMutationResponse)
def update_row(
    file_id: str,
    sheet: str,
    row: RowValues,
    row_index: int = Path(..., ge=0),
    access_token: Optional[str] = Depends(get_access_token),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    """Overwrite data row ``row_index`` (0-based, header excluded)."""
    sheets_service.update_sheet_row(
        access_token, file_id, sheet, update_row_number_for(row_index), row.values
    )
    return RowMutationResponse(
        status="updated", sheet=sheet, row_index=row_index, message="Row updated successfully"
    )


@router.delete("/{file_id}/values/{sheet}/rows/{row_index}", response_model=RowMutationResponse)
def delete_row(
    file_id: str,
    sheet: str,
    row_index: int = Path(..., ge=0),
    access_token: Optional[str] = Depends(get_access_token),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    """Delete data row ``row_index`` (0-based, header excluded)."""
    sheets_service.delete_sheet_row(access_token, file_id, sheet, delete_index_for(row_index))
    return RowMutationResponse(
        status="deleted", sheet=sheet, row_index=row_index, message="Row deleted successfully"
    )


@router.post("/{file_id}/patients", response_model=AddPatientResult, status_code=201)
def create_patient(
    file_id: str,
    form: NewPatient,
    access_token: Optional[str] = Depends(get_access_token),
    sheets_service: GoogleSheetsService = Depends(get_sheets_service),
):
    return add_patient(sheets_service, access_token, file_id, form)
