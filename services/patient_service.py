"""
Adds a patient across the four record tabs of a spreadsheet.

Column order per tab is a positional convention of the spreadsheet, not a
declared schema:

    patient      ssn, first_name, last_name, address, location, email, phone, pcp
    appointment  appointmentID, patientID, physicianID, start_dt_time, next_dt_time
    prescribes   physician, patientID, description, dose
    physician    employeeid, name, position, phone
"""

import random
from typing import List, Optional, Tuple

from errors import SheetDeskError
from schemas.patients import AUTO_GENERATE, AddPatientResult, NewPatient
from services.google_sheets_service import GoogleSheetsService
from utils.formatting import format_date, generate_id
from utils.structured_logging import sheets_logger

PATIENT_SHEET = "patient"
APPOINTMENT_SHEET = "appointment"
PRESCRIBES_SHEET = "prescribes"
PHYSICIAN_SHEET = "physician"

PATIENT_ID_PREFIX = "a12kj"
APPOINTMENT_ID_PREFIX = "ap"
DEFAULT_PHYSICIAN_POSITION = "Sr Doctor"


class AddPatientError(SheetDeskError):
    def __init__(self, cause: Exception, sheets_written: List[str]):
        super().__init__(f"Failed to add patient data: {cause}")
        self.cause = cause
        self.sheets_written = sheets_written


def resolve_patient_id(patient_id: str) -> str:
    patient_id = (patient_id or "").strip()
    if not patient_id or patient_id == AUTO_GENERATE:
        return f"{PATIENT_ID_PREFIX}{random.randrange(1000):03d}"
    return patient_id


def split_physician_name(full_name: str) -> Tuple[str, str]:
    parts = full_name.split(" ")
    first = parts[0] if parts else ""
    last = parts[1] if len(parts) > 1 else ""
    return first, last


def build_patient_rows(
    form: NewPatient, patient_id: str, appointment_id: str
) -> List[Tuple[str, List[str]]]:
    """Rows to append, in order, as ``(tab title, values)`` pairs."""
    rows = [
        (PATIENT_SHEET, [
            patient_id,
            form.firstName,
            form.lastName,
            form.address,
            form.location,
            "",
            form.phone,
            "",
        ]),
        (APPOINTMENT_SHEET, [
            appointment_id,
            patient_id,
            form.physicianId,
            format_date(form.visitDate),
            format_date(form.nextVisit),
        ]),
        (PRESCRIBES_SHEET, [
            form.physicianId,
            patient_id,
            form.prescription,
            form.dose,
        ]),
    ]

    # Only a form naming a physician creates a physician record
    if form.physicianId and form.physicianName:
        first, last = split_physician_name(form.physicianName)
        rows.append((PHYSICIAN_SHEET, [
            form.physicianId,
            f"{first} {last}",
            DEFAULT_PHYSICIAN_POSITION,
            form.physicianPhone,
        ]))

    return rows


def add_patient(
    sheets_service: GoogleSheetsService,
    access_token: Optional[str],
    file_id: str,
    form: NewPatient,
) -> AddPatientResult:
    """
    Append the patient, appointment, prescription and (optionally) physician rows.

    The appends run one after the other; the first failure stops the rest
    and rows already written stay in place.
    """
    patient_id = resolve_patient_id(form.patientId)
    appointment_id = generate_id(APPOINTMENT_ID_PREFIX)

    written: List[str] = []
    for sheet_name, row in build_patient_rows(form, patient_id, appointment_id):
        try:
            sheets_service.add_data_to_sheet(access_token, file_id, sheet_name, row)
        except SheetDeskError as e:
            sheets_logger.error(
                action="add_patient",
                message=f"Aborted after writing {written or 'nothing'}",
                error=e,
                file_id=file_id,
                sheet=sheet_name,
            )
            raise AddPatientError(e, written) from e
        written.append(sheet_name)

    return AddPatientResult(
        patient_id=patient_id,
        appointment_id=appointment_id,
        sheets_written=written,
        message="Patient and related data added successfully",
    )
