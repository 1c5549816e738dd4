from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from typing import Optional
import json

from auth.dependencies import get_access_token
from schemas.drive import DeleteFileResponse, DriveFile, DriveFileList
from services.google_drive_service import GoogleDriveService

router = APIRouter(tags=["drive"])


# Dependency Injection for Drive Service
def get_drive_service():
    return GoogleDriveService()


@router.get("/drive/files", response_model=DriveFileList)
def list_drive_files(
    access_token: Optional[str] = Depends(get_access_token),
    drive_service: GoogleDriveService = Depends(get_drive_service),
):
    """List the spreadsheets in the signed-in user's Drive."""
    files = [DriveFile(**f) for f in drive_service.list_files(access_token)]
    return DriveFileList(files=files, total=len(files))


@router.post("/drive/files", response_model=DriveFile)
async def upload_drive_file(
    file: UploadFile = File(...),
    metadata: Optional[str] = Form(None, description="Extra Drive metadata as a JSON object"),
    access_token: Optional[str] = Depends(get_access_token),
    drive_service: GoogleDriveService = Depends(get_drive_service),
):
    extra = None
    if metadata:
        try:
            extra = json.loads(metadata)
        except ValueError:
            raise HTTPException(status_code=400, detail="metadata must be a JSON object")
        if not isinstance(extra, dict):
            raise HTTPException(status_code=400, detail="metadata must be a JSON object")

    content = await file.read()
    uploaded = drive_service.upload_file(
        access_token,
        file_content=content,
        name=file.filename,
        mime_type=file.content_type or "application/octet-stream",
        metadata=extra,
    )
    return DriveFile(**uploaded)


@router.get("/drive/files/{file_id}/download")
def download_drive_file(
    file_id: str,
    access_token: Optional[str] = Depends(get_access_token),
    drive_service: GoogleDriveService = Depends(get_drive_service),
):
    content = drive_service.download_file(access_token, file_id)
    return Response(content=content, media_type="application/octet-stream")


@router.delete("/drive/files/{file_id}", response_model=DeleteFileResponse)
def delete_drive_file(
    file_id: str,
    access_token: Optional[str] = Depends(get_access_token),
    drive_service: GoogleDriveService = Depends(get_drive_service),
):
    drive_service.delete_file(access_token, file_id)
    return DeleteFileResponse(status="deleted", file_id=file_id)
