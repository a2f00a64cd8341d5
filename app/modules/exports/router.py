import uuid
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.exports.service import ExportService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> ExportService:
    return ExportService(session)

@router.post("/assets/{asset_id}/export", dependencies=[Depends(require_scopes("exports:write"))])
async def export_asset(
    asset_id: uuid.UUID,
    request: Request,
    format: str = Query("json"),
    principal: Principal = Depends(get_principal),
    service: ExportService = Depends(svc),
):
    artifact = await service.export(principal, asset_id, format, request=request)
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )
