"""Global template file routes proxied to Atlas."""

from fastapi import APIRouter, Depends, Query

from atlas_client import AtlasClient
from app.routers.dependencies import get_atlas_client, get_audited_operation
from app.schemas.atlas import FileContentsResponse, RenameFileRequest, WriteFileRequest
from app.schemas.common import FileActionResponse
from app.services.actions import TEMPLATE_RESOURCE_ID, ResourceType
from app.services.audit import AuditedOperation
from app.services.auth import require_user
from app.services.backup import BackupTarget

router = APIRouter(
    prefix="/v1/templates", tags=["templates"], dependencies=[Depends(require_user)]
)


@router.get("/files/contents", response_model=FileContentsResponse)
async def get_template_file(
    file: str = Query(min_length=1),
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileContentsResponse:
    """Read a template file."""
    content = await audited.run(
        action="getTemplateFileContents",
        resource_type=ResourceType.TEMPLATE,
        resource_id=TEMPLATE_RESOURCE_ID,
        details={"file": file},
        call=lambda: atlas.get_template_file_contents(file),
    )
    return FileContentsResponse(file=file, content=content)


@router.put("/files/contents", response_model=FileActionResponse)
async def write_template_file(
    payload: WriteFileRequest,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileActionResponse:
    """Create or replace a template file."""
    await audited.run(
        action="writeTemplateFileContents",
        resource_type=ResourceType.TEMPLATE,
        resource_id=TEMPLATE_RESOURCE_ID,
        details=payload.model_dump(),
        call=lambda: atlas.write_template_file_contents(payload.file, payload.content),
        backup=BackupTarget(path=payload.file),
    )
    return FileActionResponse(message="File saved", file=payload.file)


@router.delete("/files", response_model=FileActionResponse)
async def delete_template_file(
    file: str = Query(min_length=1),
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileActionResponse:
    """Delete a template file."""
    await audited.run(
        action="deleteTemplateFile",
        resource_type=ResourceType.TEMPLATE,
        resource_id=TEMPLATE_RESOURCE_ID,
        details={"file": file},
        call=lambda: atlas.delete_template_file(file),
        backup=BackupTarget(path=file),
    )
    return FileActionResponse(message="File deleted", file=file)


@router.post("/files/rename", response_model=FileActionResponse)
async def rename_template_file(
    payload: RenameFileRequest,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileActionResponse:
    """Rename a template file."""
    await audited.run(
        action="renameTemplateFile",
        resource_type=ResourceType.TEMPLATE,
        resource_id=TEMPLATE_RESOURCE_ID,
        details=payload.model_dump(by_alias=True),
        call=lambda: atlas.rename_template_file(
            old_path=payload.old_path, new_path=payload.new_path
        ),
        backup=BackupTarget(path=payload.old_path),
    )
    return FileActionResponse(message="File renamed", file=payload.new_path)
