import json
import uuid
from decimal import Decimal
from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.errors import ValidationError
from app.core.security import get_principal, require_scopes, Principal
from app.modules.assets.schemas import (
    AssetOut, AssetUpdate, AssetUploadOut, AssetStatisticsOut, AssetSummaryOut,
)
from app.modules.assets.service import AssetService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AssetService:
    return AssetService(session)

@router.post("", response_model=AssetUploadOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("assets:write"))])
async def upload_asset(
    file: UploadFile = File(...),
    title: str | None = Form(default=None, max_length=255),
    description: str | None = Form(default=None),
    duration_seconds: Decimal | None = Form(default=None, ge=0),
    width: int | None = Form(default=None, gt=0),
    height: int | None = Form(default=None, gt=0),
    metadata: str | None = Form(default=None, description="JSON object"),
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    meta = None
    if metadata:
        try:
            meta = json.loads(metadata)
        except json.JSONDecodeError:
            raise ValidationError("metadata must be a JSON object", field="metadata")
        if not isinstance(meta, dict):
            raise ValidationError("metadata must be a JSON object", field="metadata")
    data = await file.read()
    obj = await service.create(
        principal,
        data=data,
        filename=file.filename or "upload",
        content_type=file.content_type,
        title=title,
        description=description,
        duration_seconds=duration_seconds,
        width=width,
        height=height,
        metadata=meta,
    )
    return AssetUploadOut(**AssetOut.model_validate(obj).model_dump(), download_url=service.download_url(obj))

@router.get("", response_model=list[AssetOut], dependencies=[Depends(require_scopes("assets:read"))])
async def list_assets(
    status: str | None = Query(default=None, pattern="^(draft|labeled|exported)$"),
    kind: str | None = Query(default=None, pattern="^(audio|image)$"),
    search: str | None = Query(default=None, max_length=255),
    limit: int = Query(15, ge=1, le=100), offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    return await service.list(principal, status=status, kind=kind, search=search, limit=limit, offset=offset)

@router.get("/statistics", response_model=AssetStatisticsOut, dependencies=[Depends(require_scopes("assets:read"))])
async def asset_statistics(
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    return await service.statistics(principal)

@router.get("/{asset_id}", response_model=AssetUploadOut, dependencies=[Depends(require_scopes("assets:read"))])
async def get_asset(
    asset_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    obj = await service.get_owned(principal, asset_id)
    return AssetUploadOut(**AssetOut.model_validate(obj).model_dump(), download_url=service.download_url(obj))

@router.get("/{asset_id}/summary", response_model=AssetSummaryOut, dependencies=[Depends(require_scopes("assets:read"))])
async def asset_summary(
    asset_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    return await service.summary(principal, asset_id)

@router.patch("/{asset_id}", response_model=AssetOut, dependencies=[Depends(require_scopes("assets:write"))])
async def update_asset(
    asset_id: uuid.UUID,
    payload: AssetUpdate,
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    return await service.update_metadata(principal, asset_id, payload)

@router.post("/{asset_id}/labeled", response_model=AssetOut, dependencies=[Depends(require_scopes("assets:write"))])
async def mark_labeled(
    asset_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    return await service.mark_labeled(principal, asset_id)

@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("assets:write"))])
async def delete_asset(
    asset_id: uuid.UUID,
    request: Request,
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    await service.soft_delete(principal, asset_id, request=request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.delete("/{asset_id}/purge", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("assets:purge"))])
async def purge_asset(
    asset_id: uuid.UUID,
    request: Request,
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    await service.purge(principal, asset_id, request=request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
