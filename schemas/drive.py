from typing import List, Optional
from pydantic import BaseModel


class DriveFile(BaseModel):
    id: str
    name: str
    mimeType: str
    webViewLink: Optional[str] = None


class DriveFileList(BaseModel):
    files: List[DriveFile]
    total: int


class DeleteFileResponse(BaseModel):
    status: str
    file_id: str
