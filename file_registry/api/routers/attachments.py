"""
Attachment Router
Lists the files attached to an entity.
"""
from fastapi import APIRouter, Depends, Query

from ...config import settings
from ...core.attachable import EntityRef
from ...core.enums import USAGE_TYPE_DEFAULT
from ...services.file_manager import FileManager
from ..dependencies import get_file_manager
from ..schemas import file as file_schema


router = APIRouter(
    prefix="/entities",
    tags=["attachments"],
)


@router.get(
    "/{entity_type}/{entity_id}/files",
    response_model=file_schema.FileListResponse,
    summary="List files attached to an entity"
)
async def get_attached_files(
    entity_type: str,
    entity_id: str,
    usage_type: int = USAGE_TYPE_DEFAULT,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.ATTACHED_PAGE_SIZE, ge=1, le=200),
    file_manager: FileManager = Depends(get_file_manager),
):
    """Persisted files attached to the entity under the usage type, in attach order."""
    provider = file_manager.get_all_attached_provider(
        EntityRef(entity_type, entity_id), usage_type, page_size
    )
    files = await provider.get_page(page)

    return file_schema.FileListResponse(
        files=[file_schema.FileResponse.model_validate(file) for file in files],
        total_count=await provider.get_total_count(),
        page=page,
        page_size=page_size,
        page_count=await provider.get_page_count(),
    )
