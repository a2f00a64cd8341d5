import uuid
from decimal import Decimal
from typing import Sequence
from sqlalchemy import select, and_, or_, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.assets.models import MediaAsset
from app.modules.labels.models import Label
from app.modules.segments.models import Segment
from app.modules.regions.models import Region

class AssetRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> MediaAsset:
        obj = MediaAsset(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, asset_id: uuid.UUID, *, include_deleted: bool = False) -> MediaAsset | None:
        conditions = [MediaAsset.id == asset_id, MediaAsset.org_id == org_id]
        if not include_deleted:
            conditions.append(MediaAsset.deleted_at.is_(None))
        res = await self.session.execute(select(MediaAsset).where(and_(*conditions)))
        return res.scalar_one_or_none()

    async def list(self, org_id: uuid.UUID, owner_id: uuid.UUID, *, status: str | None = None, kind: str | None = None, search: str | None = None, limit: int = 15, offset: int = 0) -> Sequence[MediaAsset]:
        conditions = [MediaAsset.org_id == org_id, MediaAsset.owner_id == owner_id, MediaAsset.deleted_at.is_(None)]
        if status: conditions.append(MediaAsset.status == status)
        if kind:   conditions.append(MediaAsset.kind == kind)
        if search:
            like = f"%{search}%"
            conditions.append(or_(
                MediaAsset.original_filename.ilike(like),
                MediaAsset.title.ilike(like),
                MediaAsset.description.ilike(like),
            ))
        q = select(MediaAsset).where(and_(*conditions)).order_by(MediaAsset.created_at.desc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def count_by_status(self, org_id: uuid.UUID, owner_id: uuid.UUID) -> dict[str, int]:
        q = select(MediaAsset.status, func.count()).where(
            MediaAsset.org_id == org_id,
            MediaAsset.owner_id == owner_id,
            MediaAsset.deleted_at.is_(None),
        ).group_by(MediaAsset.status)
        res = await self.session.execute(q)
        return {status: count for status, count in res.all()}

    async def stored_filename_taken(self, stored_filename: str) -> bool:
        q = select(func.count()).select_from(MediaAsset).where(MediaAsset.stored_filename == stored_filename)
        return (await self.session.execute(q)).scalar_one() > 0

    async def segment_totals(self, asset_id: uuid.UUID) -> tuple[int, Decimal]:
        q = select(func.count(Segment.id), func.coalesce(func.sum(Segment.duration), 0)).where(Segment.asset_id == asset_id)
        count, total = (await self.session.execute(q)).one()
        return count, Decimal(str(total)).quantize(Decimal("0.001"))

    async def region_count(self, asset_id: uuid.UUID) -> int:
        q = select(func.count(Region.id)).where(Region.asset_id == asset_id)
        return (await self.session.execute(q)).scalar_one()

    async def purge(self, asset: MediaAsset) -> None:
        # children first; explicit so the cascade does not depend on the backend's FK enforcement
        await self.session.execute(delete(Segment).where(Segment.asset_id == asset.id))
        await self.session.execute(delete(Region).where(Region.asset_id == asset.id))
        await self.session.execute(delete(Label).where(Label.asset_id == asset.id))
        await self.session.delete(asset)
        await self.session.flush()

    async def label_count(self, asset_id: uuid.UUID) -> int:
        q = select(func.count(Label.id)).where(Label.asset_id == asset_id)
        return (await self.session.execute(q)).scalar_one()
