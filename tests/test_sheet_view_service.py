from schemas.sheets import SheetDescriptor
from services.sheet_view_service import (
    choose_active_sheet,
    delete_index_for,
    filter_rows,
    split_header,
    update_row_number_for,
)

TABS = [
    SheetDescriptor(id=11, title="physician"),
    SheetDescriptor(id=0, title="Patient"),
    SheetDescriptor(id=4, title="appointment"),
]


def test_requested_tab_wins():
    assert choose_active_sheet(TABS, requested="appointment") == "appointment"


def test_default_tab_is_case_insensitive():
    assert choose_active_sheet(TABS) == "Patient"


def test_unknown_request_falls_back_to_default():
    assert choose_active_sheet(TABS, requested="billing") == "Patient"


def test_first_tab_when_no_default():
    tabs = [SheetDescriptor(id=3, title="notes"), SheetDescriptor(id=8, title="misc")]
    assert choose_active_sheet(tabs) == "notes"


def test_no_tabs():
    assert choose_active_sheet([]) is None


def test_split_header():
    header, rows = split_header([["ssn", "name"], ["1", "Ana"], ["2", "Ben"]])

    assert header == ["ssn", "name"]
    assert rows == [["1", "Ana"], ["2", "Ben"]]
    assert split_header([]) == ([], [])
    assert split_header([["only", "header"]]) == (["only", "header"], [])


def test_filter_keeps_original_indices():
    rows = [["1", "Ana", "Ward 3"], ["2", "Ben", "Ward 1"], ["3", "ANAIS", "Ward 2"]]

    assert filter_rows(rows, "ana") == [(0, rows[0]), (2, rows[2])]
    assert filter_rows(rows, "ward 1") == [(1, rows[1])]
    assert filter_rows(rows, "zzz") == []


def test_filter_without_term_keeps_everything():
    rows = [["1"], ["2"]]

    assert filter_rows(rows, None) == [(0, ["1"]), (1, ["2"])]
    assert filter_rows(rows, "") == [(0, ["1"]), (1, ["2"])]


def test_row_addressing():
    # Data row 0 sits directly below the header: sheet index 1, A1 row 2.
    assert delete_index_for(0) == 1
    assert update_row_number_for(0) == 2
    assert delete_index_for(5) == 6
    assert update_row_number_for(5) == 7
