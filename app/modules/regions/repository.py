import uuid
from typing import Sequence
from sqlalchemy import select, and_, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.labels.models import Label
from app.modules.regions.models import Region

class RegionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, org_id: uuid.UUID, region_id: uuid.UUID) -> Region | None:
        q = select(Region).where(Region.id == region_id, Region.org_id == org_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list_for_asset(self, asset_id: uuid.UUID, *, label_id: uuid.UUID | None = None) -> Sequence[tuple[Region, Label]]:
        conditions = [Region.asset_id == asset_id]
        if label_id:
            conditions.append(Region.label_id == label_id)
        q = (
            select(Region, Label)
            .join(Label, Label.id == Region.label_id)
            .where(and_(*conditions))
            .order_by(Region.created_at.asc())
        )
        res = await self.session.execute(q)
        return [(region, label) for region, label in res.all()]

    async def delete(self, region: Region) -> None:
        await self.session.delete(region)
        await self.session.flush()

    async def delete_for_asset(self, asset_id: uuid.UUID) -> None:
        await self.session.execute(delete(Region).where(Region.asset_id == asset_id))
        await self.session.flush()
