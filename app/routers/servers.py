"""Server, group and server file routes proxied to Atlas."""

from fastapi import APIRouter, Depends, Query

from atlas_client import AtlasClient
from app.routers.dependencies import get_atlas_client, get_audited_operation
from app.schemas.atlas import (
    FileContentsResponse,
    GroupResponse,
    RenameFileRequest,
    ScaleRequest,
    ScaleResponse,
    ServerResponse,
    WriteFileRequest,
)
from app.schemas.common import FileActionResponse
from app.services.actions import ResourceType
from app.services.audit import AuditedOperation
from app.services.auth import require_user
from app.services.backup import BackupTarget

router = APIRouter(prefix="/v1", tags=["servers"], dependencies=[Depends(require_user)])


@router.get("/servers", response_model=list[ServerResponse])
async def list_servers(
    group: str | None = None,
    status: str | None = None,
    search: str | None = None,
    atlas: AtlasClient = Depends(get_atlas_client),
) -> list[ServerResponse]:
    """List servers known to Atlas."""
    servers = await atlas.list_servers(group=group, status=status, search=search)
    return [ServerResponse.model_validate(server) for server in servers]


@router.get("/servers/{server}", response_model=ServerResponse)
async def get_server(
    server: str,
    atlas: AtlasClient = Depends(get_atlas_client),
) -> ServerResponse:
    """Fetch one server by id or name."""
    return ServerResponse.model_validate(await atlas.get_server(server))


@router.post("/servers/{server}/start", response_model=ServerResponse)
async def start_server(
    server: str,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> ServerResponse:
    """Start a server."""
    result = await audited.run(
        action="startServer",
        resource_type=ResourceType.SERVER,
        resource_id=server,
        details={"server": server},
        call=lambda: atlas.start_server(server),
    )
    return ServerResponse.model_validate(result)


@router.post("/servers/{server}/stop", response_model=ServerResponse)
async def stop_server(
    server: str,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> ServerResponse:
    """Stop a server."""
    result = await audited.run(
        action="stopServer",
        resource_type=ResourceType.SERVER,
        resource_id=server,
        details={"server": server},
        call=lambda: atlas.stop_server(server),
    )
    return ServerResponse.model_validate(result)


@router.post("/servers/{server}/restart", response_model=ServerResponse)
async def restart_server(
    server: str,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> ServerResponse:
    """Restart a server."""
    result = await audited.run(
        action="restartServer",
        resource_type=ResourceType.SERVER,
        resource_id=server,
        details={"server": server},
        call=lambda: atlas.restart_server(server),
    )
    return ServerResponse.model_validate(result)


@router.get("/groups", response_model=list[GroupResponse])
async def list_groups(
    atlas: AtlasClient = Depends(get_atlas_client),
) -> list[GroupResponse]:
    """List server groups."""
    return [GroupResponse.model_validate(group) for group in await atlas.list_groups()]


@router.post("/groups/{group}/scale", response_model=ScaleResponse)
async def scale_group(
    group: str,
    payload: ScaleRequest,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> ScaleResponse:
    """Scale a group up or down."""
    result = await audited.run(
        action="scale",
        resource_type=ResourceType.GROUP,
        resource_id=group,
        details={"group": group, **payload.model_dump()},
        call=lambda: atlas.scale_group(
            group, direction=payload.direction, count=payload.count
        ),
    )
    return ScaleResponse.model_validate(result)


@router.get("/servers/{server}/files/contents", response_model=FileContentsResponse)
async def get_server_file(
    server: str,
    file: str = Query(min_length=1),
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileContentsResponse:
    """Read a file on a server."""
    content = await audited.run(
        action="getServerFileContents",
        resource_type=ResourceType.FILE,
        resource_id=server,
        details={"server": server, "file": file},
        call=lambda: atlas.get_server_file_contents(server, file),
    )
    return FileContentsResponse(file=file, content=content)


@router.put("/servers/{server}/files/contents", response_model=FileActionResponse)
async def write_server_file(
    server: str,
    payload: WriteFileRequest,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileActionResponse:
    """Create or replace a file on a server."""
    await audited.run(
        action="writeServerFileContents",
        resource_type=ResourceType.FILE,
        resource_id=server,
        details={"server": server, **payload.model_dump()},
        call=lambda: atlas.write_server_file_contents(
            server, payload.file, payload.content
        ),
        backup=BackupTarget(path=payload.file, server=server),
    )
    return FileActionResponse(message="File saved", file=payload.file)


@router.delete("/servers/{server}/files", response_model=FileActionResponse)
async def delete_server_file(
    server: str,
    file: str = Query(min_length=1),
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileActionResponse:
    """Delete a file on a server."""
    await audited.run(
        action="deleteServerFile",
        resource_type=ResourceType.FILE,
        resource_id=server,
        details={"server": server, "file": file},
        call=lambda: atlas.delete_server_file(server, file),
        backup=BackupTarget(path=file, server=server),
    )
    return FileActionResponse(message="File deleted", file=file)


@router.post("/servers/{server}/files/rename", response_model=FileActionResponse)
async def rename_server_file(
    server: str,
    payload: RenameFileRequest,
    atlas: AtlasClient = Depends(get_atlas_client),
    audited: AuditedOperation = Depends(get_audited_operation),
) -> FileActionResponse:
    """Rename a file on a server."""
    await audited.run(
        action="renameServerFile",
        resource_type=ResourceType.FILE,
        resource_id=server,
        details={"server": server, **payload.model_dump(by_alias=True)},
        call=lambda: atlas.rename_server_file(
            server, old_path=payload.old_path, new_path=payload.new_path
        ),
        backup=BackupTarget(path=payload.old_path, server=server),
    )
    return FileActionResponse(message="File renamed", file=payload.new_path)
