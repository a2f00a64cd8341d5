import uuid
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.segments.schemas import SegmentCreate, SegmentUpdate, SegmentReplace, SegmentOut
from app.modules.segments.service import SegmentService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> SegmentService:
    return SegmentService(session)

@router.post("/assets/{asset_id}/segments", response_model=SegmentOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("annotations:write"))])
async def create_segment(
    asset_id: uuid.UUID,
    payload: SegmentCreate,
    principal: Principal = Depends(get_principal),
    service: SegmentService = Depends(svc),
):
    return await service.create(principal, asset_id, payload)

@router.get("/assets/{asset_id}/segments", response_model=list[SegmentOut], dependencies=[Depends(require_scopes("annotations:read"))])
async def list_segments(
    asset_id: uuid.UUID,
    label_id: uuid.UUID | None = None,
    principal: Principal = Depends(get_principal),
    service: SegmentService = Depends(svc),
):
    return await service.list(principal, asset_id, label_id=label_id)

@router.put("/assets/{asset_id}/segments", response_model=list[SegmentOut], dependencies=[Depends(require_scopes("annotations:write"))])
async def replace_segments(
    asset_id: uuid.UUID,
    payload: SegmentReplace,
    principal: Principal = Depends(get_principal),
    service: SegmentService = Depends(svc),
):
    return await service.replace_all(principal, asset_id, payload.segments)

@router.patch("/segments/{segment_id}", response_model=SegmentOut, dependencies=[Depends(require_scopes("annotations:write"))])
async def update_segment(
    segment_id: uuid.UUID,
    payload: SegmentUpdate,
    principal: Principal = Depends(get_principal),
    service: SegmentService = Depends(svc),
):
    return await service.update(principal, segment_id, payload)

@router.delete("/segments/{segment_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("annotations:write"))])
async def delete_segment(
    segment_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: SegmentService = Depends(svc),
):
    await service.delete(principal, segment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
