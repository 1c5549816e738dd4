"""
Tests for the add-patient flow and its formatting helpers.
"""

import re
import pytest
from unittest.mock import Mock

from errors import GoogleApiError, MissingAccessTokenError
from schemas.patients import NewPatient
from services.patient_service import (
    AddPatientError,
    add_patient,
    build_patient_rows,
    resolve_patient_id,
    split_physician_name,
)
from utils.formatting import format_date, generate_id


def full_form(**overrides) -> NewPatient:
    fields = dict(
        patientId="p-77",
        firstName="Ana",
        lastName="Lopez",
        location="Ward 3",
        age="41",
        phone="555-0101",
        address="12 Elm St",
        email="ana@example.com",
        prescription="Ibuprofen",
        dose="200mg",
        visitDate="2024-03-05",
        nextVisit="2024-04-02",
        physicianId="ph-9",
        physicianName="Greg House",
        physicianPhone="555-0199",
        bill="120",
    )
    fields.update(overrides)
    return NewPatient(**fields)


class TestFormatting:

    def test_format_date_iso(self):
        assert format_date("2024-03-05") == "03/05/24"

    def test_format_date_empty(self):
        assert format_date("") == ""

    def test_format_date_garbage_passes_through(self):
        assert format_date("next tuesday") == "next tuesday"

    def test_generate_id_shape(self):
        assert re.fullmatch(r"ap\d{4}", generate_id("ap"))
        assert re.fullmatch(r"x\d{2}", generate_id("x", digits=2))


class TestPatientIds:

    @pytest.mark.parametrize("value", ["Auto Generate", "", "  Auto Generate  "])
    def test_generated_when_auto_or_blank(self, value):
        assert re.fullmatch(r"a12kj\d{3}", resolve_patient_id(value))

    def test_explicit_id_kept(self):
        assert resolve_patient_id("p-77") == "p-77"

    def test_explicit_id_is_trimmed(self):
        assert resolve_patient_id("  p-77 ") == "p-77"

    def test_split_physician_name(self):
        assert split_physician_name("Greg House") == ("Greg", "House")
        assert split_physician_name("Cher") == ("Cher", "")
        assert split_physician_name("Mary Ann Smith") == ("Mary", "Ann")


class TestBuildRows:

    def test_four_rows_in_order(self):
        rows = build_patient_rows(full_form(), "p-77", "ap0001")

        assert rows == [
            ("patient", ["p-77", "Ana", "Lopez", "12 Elm St", "Ward 3", "", "555-0101", ""]),
            ("appointment", ["ap0001", "p-77", "ph-9", "03/05/24", "04/02/24"]),
            ("prescribes", ["ph-9", "p-77", "Ibuprofen", "200mg"]),
            ("physician", ["ph-9", "Greg House", "Sr Doctor", "555-0199"]),
        ]

    @pytest.mark.parametrize("overrides", [
        {"physicianId": ""},
        {"physicianName": ""},
        {"physicianId": "", "physicianName": ""},
    ])
    def test_physician_row_needs_id_and_name(self, overrides):
        rows = build_patient_rows(full_form(**overrides), "p-77", "ap0001")

        assert [sheet for sheet, _ in rows] == ["patient", "appointment", "prescribes"]


class TestAddPatient:

    def test_appends_each_tab_once(self):
        sheets = Mock()

        result = add_patient(sheets, "token-abc", "file-1", full_form())

        assert [c.args[2] for c in sheets.add_data_to_sheet.call_args_list] == [
            "patient", "appointment", "prescribes", "physician",
        ]
        for c in sheets.add_data_to_sheet.call_args_list:
            assert c.args[:2] == ("token-abc", "file-1")
        assert result.patient_id == "p-77"
        assert re.fullmatch(r"ap\d{4}", result.appointment_id)
        assert result.sheets_written == ["patient", "appointment", "prescribes", "physician"]
        assert result.message == "Patient and related data added successfully"

    def test_three_appends_without_physician(self):
        sheets = Mock()

        result = add_patient(sheets, "token-abc", "file-1", full_form(physicianName=""))

        assert sheets.add_data_to_sheet.call_count == 3
        assert result.sheets_written == ["patient", "appointment", "prescribes"]

    def test_padded_id_written_trimmed(self):
        sheets = Mock()

        result = add_patient(sheets, "token-abc", "file-1", full_form(patientId=" p1 "))

        assert result.patient_id == "p1"
        assert sheets.add_data_to_sheet.call_args_list[0].args[3][0] == "p1"
        assert sheets.add_data_to_sheet.call_args_list[2].args[3][1] == "p1"

    def test_generated_ids_shared_across_rows(self):
        sheets = Mock()

        result = add_patient(sheets, "token-abc", "file-1", full_form(patientId="Auto Generate"))

        patient_row = sheets.add_data_to_sheet.call_args_list[0].args[3]
        appointment_row = sheets.add_data_to_sheet.call_args_list[1].args[3]
        assert patient_row[0] == result.patient_id
        assert appointment_row[:2] == [result.appointment_id, result.patient_id]

    def test_failure_stops_remaining_appends(self):
        sheets = Mock()
        sheets.add_data_to_sheet.side_effect = [
            None,
            GoogleApiError("Failed to add data to appointment sheet", status=403),
        ]

        with pytest.raises(AddPatientError) as exc_info:
            add_patient(sheets, "token-abc", "file-1", full_form())

        assert sheets.add_data_to_sheet.call_count == 2
        assert exc_info.value.sheets_written == ["patient"]
        assert str(exc_info.value) == (
            "Failed to add patient data: Failed to add data to appointment sheet"
        )
        assert isinstance(exc_info.value.cause, GoogleApiError)

    def test_missing_token_fails_first_append(self):
        sheets = Mock()
        sheets.add_data_to_sheet.side_effect = MissingAccessTokenError()

        with pytest.raises(AddPatientError) as exc_info:
            add_patient(sheets, None, "file-1", full_form())

        assert sheets.add_data_to_sheet.call_count == 1
        assert exc_info.value.sheets_written == []
