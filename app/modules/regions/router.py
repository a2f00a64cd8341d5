import uuid
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.regions.schemas import RegionCreate, RegionUpdate, RegionReplace, RegionOut
from app.modules.regions.service import RegionService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> RegionService:
    return RegionService(session)

@router.post("/assets/{asset_id}/regions", response_model=RegionOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("annotations:write"))])
async def create_region(
    asset_id: uuid.UUID,
    payload: RegionCreate,
    principal: Principal = Depends(get_principal),
    service: RegionService = Depends(svc),
):
    return await service.create(principal, asset_id, payload)

@router.get("/assets/{asset_id}/regions", response_model=list[RegionOut], dependencies=[Depends(require_scopes("annotations:read"))])
async def list_regions(
    asset_id: uuid.UUID,
    label_id: uuid.UUID | None = None,
    principal: Principal = Depends(get_principal),
    service: RegionService = Depends(svc),
):
    return await service.list(principal, asset_id, label_id=label_id)

@router.put("/assets/{asset_id}/regions", response_model=list[RegionOut], dependencies=[Depends(require_scopes("annotations:write"))])
async def replace_regions(
    asset_id: uuid.UUID,
    payload: RegionReplace,
    principal: Principal = Depends(get_principal),
    service: RegionService = Depends(svc),
):
    return await service.replace_all(principal, asset_id, payload.regions)

@router.patch("/regions/{region_id}", response_model=RegionOut, dependencies=[Depends(require_scopes("annotations:write"))])
async def update_region(
    region_id: uuid.UUID,
    payload: RegionUpdate,
    principal: Principal = Depends(get_principal),
    service: RegionService = Depends(svc),
):
    return await service.update(principal, region_id, payload)

@router.delete("/regions/{region_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("annotations:write"))])
async def delete_region(
    region_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: RegionService = Depends(svc),
):
    await service.delete(principal, region_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
