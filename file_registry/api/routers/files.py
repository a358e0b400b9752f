"""
File Management Router
Endpoints for uploading, downloading, looking up and attaching managed files.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from ...core.attachable import EntityRef
from ...core.uploads import UploadedFile
from ...services.file_manager import FileManager
from ..dependencies import get_file_manager
from ..schemas import file as file_schema


router = APIRouter(
    prefix="/files",
    tags=["files"],
    responses={404: {"description": "Not found"}},
)


@router.post(
    "/{domain}/upload",
    response_model=file_schema.FileResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": file_schema.ValidationErrorResponse}},
    summary="Upload a file into a domain"
)
async def upload_file(
    domain: str,
    file: UploadFile = File(...),
    file_manager: FileManager = Depends(get_file_manager),
):
    """
    Upload a file (multipart) into a domain.

    The file is validated against the domain's rule and stored as temporary
    until it is attached to an entity.
    """
    managed = file_manager.create_managed_object(domain)
    # Reject oversized uploads before buffering their content
    rejected = file_manager.get_validator(domain).validate_declared_size(file.filename or "", file.size)
    if rejected:
        return JSONResponse(
            status_code=422,
            content={"errors": [error.to_dict() for error in rejected]},
        )
    result = await file_manager.upload(managed, await UploadedFile.from_upload(file))

    if not result.ok:
        return JSONResponse(
            status_code=422,
            content={"errors": result.error_dicts()},
        )
    return file_schema.FileResponse.model_validate(result.file)


@router.get(
    "/hash/{file_hash}",
    response_model=file_schema.FileResponse,
    summary="Look up a file by content hash"
)
async def get_file_by_hash(
    file_hash: str,
    file_manager: FileManager = Depends(get_file_manager),
):
    """Metadata of the first file stored with this hash."""
    file = await file_manager.load_by_hash(file_hash)
    if not file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )
    return file_schema.FileResponse.model_validate(file)


@router.get(
    "/{file_id}",
    summary="Download a file"
)
async def download_file(
    file_id: int,
    file_manager: FileManager = Depends(get_file_manager),
):
    """Send the whole file with its original name and mime type."""
    return await file_manager.send_file(file_id)


@router.get(
    "/{file_id}/x-send",
    summary="Download a file through the web server"
)
async def x_send_file(
    file_id: int,
    save_name: Optional[str] = None,
    inline: bool = False,
    file_manager: FileManager = Depends(get_file_manager),
):
    """Hand the file over to the web server with an X-Sendfile style header."""
    return await file_manager.x_send_file(
        file_id,
        {"saveName": save_name, "forceDownload": not inline},
    )


@router.post(
    "/{file_id}/attach",
    response_model=file_schema.AttachResponse,
    summary="Attach a file to an entity"
)
async def attach_file(
    file_id: int,
    attach_request: file_schema.AttachRequest,
    file_manager: FileManager = Depends(get_file_manager),
):
    """Attach a file to an entity. The file becomes persisted."""
    file = await file_manager.load(file_id)
    if not file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )

    entity = EntityRef(attach_request.entity_type, attach_request.entity_id)
    created = await file_manager.attach(file, entity, attach_request.usage_type)
    return file_schema.AttachResponse(
        file_id=file_id,
        changed=created,
        msg="File attached" if created else "File was already attached"
    )


@router.post(
    "/{file_id}/detach",
    response_model=file_schema.AttachResponse,
    summary="Detach a file from an entity"
)
async def detach_file(
    file_id: int,
    attach_request: file_schema.AttachRequest,
    file_manager: FileManager = Depends(get_file_manager),
):
    """
    Detach a file from an entity.

    A file that is no longer attached anywhere is deleted together with its bytes.
    """
    file = await file_manager.load(file_id)
    if not file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )

    entity = EntityRef(attach_request.entity_type, attach_request.entity_id)
    deleted = await file_manager.detach(file, entity, attach_request.usage_type)
    return file_schema.AttachResponse(
        file_id=file_id,
        changed=deleted,
        msg="File detached and deleted" if deleted else "File detached"
    )
