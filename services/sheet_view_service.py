from typing import List, Optional, Sequence, Tuple

from schemas.sheets import SheetDescriptor

# The header occupies sheet index 0 / sheet row 1.
HEADER_ROWS = 1


def choose_active_sheet(
    sheets: Sequence[SheetDescriptor],
    requested: Optional[str] = None,
    default_title: str = "patient",
) -> Optional[str]:
    """
    Pick the tab to display: the requested one if it exists, otherwise the
    tab titled ``default_title`` (case-insensitive), otherwise the first tab.
    """
    if requested and any(s.title == requested for s in sheets):
        return requested
    for sheet in sheets:
        if sheet.title.lower() == default_title.lower():
            return sheet.title
    return sheets[0].title if sheets else None


def split_header(values: List[List[str]]) -> Tuple[List[str], List[List[str]]]:
    if not values:
        return [], []
    return list(values[0]), [list(row) for row in values[HEADER_ROWS:]]


def filter_rows(rows: List[List[str]], search: Optional[str]) -> List[Tuple[int, List[str]]]:
    """
    Keep data rows where any cell contains ``search`` (case-insensitive).

    Each match is returned with its index among all data rows so edits and
    deletes still address the right sheet row while a search is active.
    """
    term = (search or "").lower()
    return [
        (index, row)
        for index, row in enumerate(rows)
        if not term or any(term in str(cell).lower() for cell in row)
    ]


def delete_index_for(row_index: int) -> int:
    """0-based sheet index of data row ``row_index`` (used by deleteDimension)."""
    return row_index + HEADER_ROWS


def update_row_number_for(row_index: int) -> int:
    """1-based A1 row number of data row ``row_index``."""
    return row_index + HEADER_ROWS + 1
