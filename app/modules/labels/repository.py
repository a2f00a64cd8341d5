import uuid
from typing import Sequence
from sqlalchemy import select, and_, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.labels.models import Label
from app.modules.segments.models import Segment
from app.modules.regions.models import Region

class LabelRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, asset_id: uuid.UUID, **data) -> Label:
        obj = Label(org_id=org_id, asset_id=asset_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, label_id: uuid.UUID) -> Label | None:
        q = select(Label).where(Label.id == label_id, Label.org_id == org_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def name_exists(self, asset_id: uuid.UUID, name: str, *, exclude_id: uuid.UUID | None = None) -> bool:
        conditions = [Label.asset_id == asset_id, Label.name == name]
        if exclude_id is not None:
            conditions.append(Label.id != exclude_id)
        q = select(func.count()).select_from(Label).where(and_(*conditions))
        return (await self.session.execute(q)).scalar_one() > 0

    async def list_for_asset(self, asset_id: uuid.UUID, *, active_only: bool = False) -> Sequence[tuple[Label, int]]:
        """Labels in creation order, each with the number of annotations that reference it."""
        seg_count = select(func.count(Segment.id)).where(Segment.label_id == Label.id).scalar_subquery()
        reg_count = select(func.count(Region.id)).where(Region.label_id == Label.id).scalar_subquery()
        conditions = [Label.asset_id == asset_id]
        if active_only:
            conditions.append(Label.is_active.is_(True))
        q = select(Label, seg_count + reg_count).where(and_(*conditions)).order_by(Label.created_at.asc())
        res = await self.session.execute(q)
        return [(label, usage) for label, usage in res.all()]

    async def usage_count(self, label_id: uuid.UUID) -> int:
        segs = (await self.session.execute(select(func.count(Segment.id)).where(Segment.label_id == label_id))).scalar_one()
        regs = (await self.session.execute(select(func.count(Region.id)).where(Region.label_id == label_id))).scalar_one()
        return segs + regs

    async def delete(self, label: Label) -> None:
        await self.session.execute(delete(Segment).where(Segment.label_id == label.id))
        await self.session.execute(delete(Region).where(Region.label_id == label.id))
        await self.session.delete(label)
        await self.session.flush()
