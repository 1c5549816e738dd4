from typing import List, Optional
from pydantic import BaseModel, Field


class SheetDescriptor(BaseModel):
    """A tab inside a spreadsheet."""
    id: int
    title: str


class SheetTabsResponse(BaseModel):
    file_id: str
    sheets: List[SheetDescriptor]
    active_sheet: Optional[str] = None


class SheetDataResponse(BaseModel):
    sheet: str
    header: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)
    # Unfiltered data-row index of each entry in rows, for row PUT/DELETE
    row_indices: List[int] = Field(default_factory=list)
    total: int = 0
    search: Optional[str] = None


class RowValues(BaseModel):
    """An ordered list of cell values; column meaning depends on the tab."""
    values: List[str]


class RowMutationResponse(BaseModel):
    status: str
    sheet: str
    row_index: Optional[int] = None
    message: str
