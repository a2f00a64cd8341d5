import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.labels.schemas import LabelCreate, LabelUpdate, LabelOut
from app.modules.labels.service import LabelService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> LabelService:
    return LabelService(session)

@router.post("/assets/{asset_id}/labels", response_model=LabelOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("annotations:write"))])
async def create_label(
    asset_id: uuid.UUID,
    payload: LabelCreate,
    principal: Principal = Depends(get_principal),
    service: LabelService = Depends(svc),
):
    return await service.create(principal, asset_id, payload)

@router.get("/assets/{asset_id}/labels", response_model=list[LabelOut], dependencies=[Depends(require_scopes("annotations:read"))])
async def list_labels(
    asset_id: uuid.UUID,
    active_only: bool = False,
    principal: Principal = Depends(get_principal),
    service: LabelService = Depends(svc),
):
    return await service.list(principal, asset_id, active_only=active_only)

@router.patch("/labels/{label_id}", response_model=LabelOut, dependencies=[Depends(require_scopes("annotations:write"))])
async def update_label(
    label_id: uuid.UUID,
    payload: LabelUpdate,
    principal: Principal = Depends(get_principal),
    service: LabelService = Depends(svc),
):
    return await service.update(principal, label_id, payload)

@router.post("/labels/{label_id}/deactivate", response_model=LabelOut, dependencies=[Depends(require_scopes("annotations:write"))])
async def deactivate_label(
    label_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: LabelService = Depends(svc),
):
    return await service.deactivate(principal, label_id)

@router.post("/labels/{label_id}/activate", response_model=LabelOut, dependencies=[Depends(require_scopes("annotations:write"))])
async def activate_label(
    label_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: LabelService = Depends(svc),
):
    return await service.activate(principal, label_id)

@router.post("/labels/{label_id}/toggle", response_model=LabelOut, dependencies=[Depends(require_scopes("annotations:write"))])
async def toggle_label(
    label_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: LabelService = Depends(svc),
):
    return await service.toggle_active(principal, label_id)

@router.delete("/labels/{label_id}", dependencies=[Depends(require_scopes("annotations:write"))])
async def delete_label(
    label_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: LabelService = Depends(svc),
):
    removed = await service.delete(principal, label_id)
    return {"deleted": str(label_id), "annotations_removed": removed}
