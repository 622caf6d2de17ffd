from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from app.core.auth import get_current_admin
from app.controllers.file_controller import StorageError, get_file_stage

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{storage_key:path}")
def download_file_route(
    storage_key: str,
    file_stage=Depends(get_file_stage),
    _admin=Depends(get_current_admin),
):
    try:
        path = file_stage.resolve(storage_key)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(path)
