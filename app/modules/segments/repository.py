import uuid
from typing import Sequence
from sqlalchemy import select, and_, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.labels.models import Label
from app.modules.segments.models import Segment

class SegmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, org_id: uuid.UUID, segment_id: uuid.UUID) -> Segment | None:
        q = select(Segment).where(Segment.id == segment_id, Segment.org_id == org_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list_for_asset(self, asset_id: uuid.UUID, *, label_id: uuid.UUID | None = None) -> Sequence[tuple[Segment, Label]]:
        """Timeline order: ascending start_time."""
        conditions = [Segment.asset_id == asset_id]
        if label_id:
            conditions.append(Segment.label_id == label_id)
        q = (
            select(Segment, Label)
            .join(Label, Label.id == Segment.label_id)
            .where(and_(*conditions))
            .order_by(Segment.start_time.asc(), Segment.end_time.asc(), Segment.created_at.asc())
        )
        res = await self.session.execute(q)
        return [(seg, label) for seg, label in res.all()]

    async def delete(self, segment: Segment) -> None:
        await self.session.delete(segment)
        await self.session.flush()

    async def delete_for_asset(self, asset_id: uuid.UUID) -> None:
        await self.session.execute(delete(Segment).where(Segment.asset_id == asset_id))
        await self.session.flush()
