import logging
import uuid
from decimal import Decimal
from typing import Sequence
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import ConstraintViolation, InvalidRangeError, NotFoundError, ValidationError
from app.core.numeric import to_fixed
from app.core.security import Principal
from app.modules.assets import lifecycle
from app.modules.assets.models import MediaAsset
from app.modules.assets.service import AUDIO, AssetService
from app.modules.labels.models import Label
from app.modules.labels.schemas import LabelRef
from app.modules.labels.service import LabelService
from app.modules.segments.models import Segment
from app.modules.segments.repository import SegmentRepository
from app.modules.segments.schemas import SegmentCreate, SegmentOut, SegmentUpdate

logger = logging.getLogger(__name__)

TIME_PLACES = 3

def check_range(start, end) -> tuple[Decimal, Decimal]:
    start = to_fixed(start, TIME_PLACES, "start_time")
    end = to_fixed(end, TIME_PLACES, "end_time")
    if start < 0:
        raise ValidationError("Start time cannot be negative", field="start_time")
    if start >= end:
        raise InvalidRangeError("End time must be after start time", field="end_time")
    return start, end

def apply_range(segment: Segment, start: Decimal, end: Decimal) -> None:
    segment.start_time = start
    segment.end_time = end
    segment.duration = end - start

def to_out(segment: Segment, label: Label | None) -> SegmentOut:
    out = SegmentOut.model_validate(segment)
    if label is not None:
        out.label = LabelRef.model_validate(label)
    return out

class SegmentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = SegmentRepository(session)
        self.assets = AssetService(session)
        self.labels = LabelService(session)

    async def _audio_asset(self, principal: Principal, asset_id: uuid.UUID) -> MediaAsset:
        asset = await self.assets.get_owned(principal, asset_id)
        if asset.kind != AUDIO:
            raise ValidationError("Segments can only be added to audio assets", field="asset_id")
        return asset

    def _warn_past_end(self, asset: MediaAsset, end: Decimal) -> None:
        if asset.duration_seconds is not None and end > asset.duration_seconds:
            logger.warning("segment on asset %s ends at %s, past the recorded duration %s", asset.id, end, asset.duration_seconds)

    async def _get_owned(self, principal: Principal, segment_id: uuid.UUID) -> tuple[Segment, MediaAsset]:
        seg = await self.repo.get(principal.org_id, segment_id)
        if not seg:
            raise NotFoundError("Segment not found")
        asset = await self._audio_asset(principal, seg.asset_id)
        return seg, asset

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if "ck_segment_range" in str(e.orig):
                raise InvalidRangeError("End time must be after start time", field="end_time") from e
            # foreign keys: the label or asset went away after validation
            raise ConstraintViolation("Segment references a label or asset that no longer exists", field="label_id") from e

    async def create(self, principal: Principal, asset_id: uuid.UUID, payload: SegmentCreate) -> SegmentOut:
        asset = await self._audio_asset(principal, asset_id)
        label = await self.labels.require_for_asset(principal, asset, payload.label_id)
        start, end = check_range(payload.start_time, payload.end_time)
        self._warn_past_end(asset, end)

        seg = Segment(org_id=principal.org_id, asset_id=asset.id, label_id=label.id, notes=payload.notes)
        apply_range(seg, start, end)
        self.session.add(seg)
        await self._commit()
        return to_out(seg, label)

    async def list(self, principal: Principal, asset_id: uuid.UUID, *, label_id: uuid.UUID | None = None) -> list[SegmentOut]:
        asset = await self._audio_asset(principal, asset_id)
        rows = await self.repo.list_for_asset(asset.id, label_id=label_id)
        return [to_out(seg, label) for seg, label in rows]

    async def update(self, principal: Principal, segment_id: uuid.UUID, payload: SegmentUpdate) -> SegmentOut:
        seg, asset = await self._get_owned(principal, segment_id)
        data = payload.model_dump(exclude_unset=True)

        label_id = data.get("label_id") or seg.label_id
        label = await self.labels.require_for_asset(principal, asset, label_id)

        # validate against the merged range so a one-sided change cannot invert it
        start, end = check_range(
            data["start_time"] if data.get("start_time") is not None else seg.start_time,
            data["end_time"] if data.get("end_time") is not None else seg.end_time,
        )
        self._warn_past_end(asset, end)

        apply_range(seg, start, end)
        seg.label_id = label.id
        if "notes" in data:
            seg.notes = data["notes"]
        await self._commit()
        return to_out(seg, label)

    async def delete(self, principal: Principal, segment_id: uuid.UUID) -> None:
        seg, _ = await self._get_owned(principal, segment_id)
        await self.repo.delete(seg)
        await self.session.commit()

    async def replace_all(self, principal: Principal, asset_id: uuid.UUID, items: Sequence[SegmentCreate]) -> Sequence[SegmentOut]:
        """Swap the asset's whole segment set in one transaction; non-empty sets mark the asset labeled."""
        asset = await self._audio_asset(principal, asset_id)

        # validate everything before touching existing rows
        prepared: list[tuple[SegmentCreate, Label, Decimal, Decimal]] = []
        for item in items:
            label = await self.labels.require_for_asset(principal, asset, item.label_id)
            start, end = check_range(item.start_time, item.end_time)
            self._warn_past_end(asset, end)
            prepared.append((item, label, start, end))

        await self.repo.delete_for_asset(asset.id)
        for item, label, start, end in prepared:
            seg = Segment(org_id=principal.org_id, asset_id=asset.id, label_id=label.id, notes=item.notes)
            apply_range(seg, start, end)
            self.session.add(seg)
        if prepared:
            lifecycle.transition(asset, lifecycle.LABELED)
        await self._commit()
        logger.info("asset %s segments replaced (%d)", asset.id, len(prepared))
        return await self.list(principal, asset.id)
