from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.errors import AuthorizationError, DuplicateLabelName, ValidationError
from app.modules.labels.schemas import LabelCreate, LabelUpdate
from app.modules.labels.service import LabelService
from app.modules.regions.models import Region
from app.modules.regions.schemas import RegionCreate
from app.modules.regions.service import RegionService
from app.modules.segments.models import Segment
from app.modules.segments.schemas import SegmentCreate
from app.modules.segments.service import SegmentService

class TestLabelService:

    @pytest.fixture
    def service(self, session):
        return LabelService(session)

    async def test_duplicate_name_on_same_asset_is_rejected(self, service, owner, make_audio):
        asset = await make_audio(owner)
        first = await service.create(owner, asset.id, LabelCreate(name="Noise", color="#6b7280"))

        with pytest.raises(DuplicateLabelName) as ei:
            await service.create(owner, asset.id, LabelCreate(name="Noise", color="#000000"))
        assert ei.value.field == "name"

        labels = await service.list(owner, asset.id)
        assert [(lb.id, lb.name, lb.color) for lb in labels] == [(first.id, "Noise", "#6b7280")]

    async def test_same_name_on_another_asset_is_fine(self, service, owner, make_audio):
        a = await make_audio(owner)
        b = await make_audio(owner)
        await service.create(owner, a.id, LabelCreate(name="Music", color="#10b981"))
        other = await service.create(owner, b.id, LabelCreate(name="Music", color="#10b981"))
        assert other.asset_id == b.id

    @pytest.mark.parametrize("color", ["red", "#fff", "#12345G", "ef4444", "#ef4444\n"])
    async def test_color_must_be_hex(self, service, owner, make_audio, color):
        asset = await make_audio(owner)
        with pytest.raises(ValidationError) as ei:
            await service.create(owner, asset.id, LabelCreate(name="Speech", color=color))
        assert ei.value.field == "color"

    async def test_blank_name_is_rejected(self, service, owner, make_audio):
        asset = await make_audio(owner)
        with pytest.raises(ValidationError) as ei:
            await service.create(owner, asset.id, LabelCreate(name="   ", color="#ef4444"))
        assert ei.value.field == "name"

    async def test_name_is_trimmed(self, service, owner, make_audio):
        asset = await make_audio(owner)
        label = await service.create(owner, asset.id, LabelCreate(name="  Speech ", color="#ef4444"))
        assert label.name == "Speech"

    async def test_only_owner_may_add_labels(self, service, owner, stranger, make_audio):
        asset = await make_audio(owner)
        with pytest.raises(AuthorizationError):
            await service.create(stranger, asset.id, LabelCreate(name="Speech", color="#ef4444"))

    async def test_rename_checks_uniqueness(self, service, owner, make_audio, make_label):
        asset = await make_audio(owner)
        speech = await make_label(owner, asset, "Speech")
        await make_label(owner, asset, "Music", "#10b981")

        with pytest.raises(DuplicateLabelName):
            await service.update(owner, speech.id, LabelUpdate(name="Music"))
        # renaming to its own name is not a conflict
        same = await service.update(owner, speech.id, LabelUpdate(name="Speech", color="#dc2626"))
        assert same.color == "#dc2626"

    async def test_activation_flags(self, service, owner, make_audio, make_label):
        asset = await make_audio(owner)
        label = await make_label(owner, asset)

        assert (await service.deactivate(owner, label.id)).is_active is False
        assert await service.list(owner, asset.id, active_only=True) == []
        assert (await service.toggle_active(owner, label.id)).is_active is True
        assert (await service.toggle_active(owner, label.id)).is_active is False
        assert (await service.activate(owner, label.id)).is_active is True
        assert len(await service.list(owner, asset.id, active_only=True)) == 1

    async def test_list_reports_usage(self, session, service, owner, make_audio, make_label):
        asset = await make_audio(owner)
        speech = await make_label(owner, asset, "Speech")
        await make_label(owner, asset, "Silence", "#000000")
        segs = SegmentService(session)
        for start in (0, 5):
            await segs.create(owner, asset.id, SegmentCreate(label_id=speech.id, start_time=Decimal(start), end_time=Decimal(start + 1)))

        usage = {lb.name: lb.usage_count for lb in await service.list(owner, asset.id)}
        assert usage == {"Speech": 2, "Silence": 0}

    async def test_delete_takes_annotations_with_it(self, session, service, owner, make_audio, make_label):
        asset = await make_audio(owner)
        speech = await make_label(owner, asset, "Speech")
        music = await make_label(owner, asset, "Music", "#10b981")
        segs = SegmentService(session)
        await segs.create(owner, asset.id, SegmentCreate(label_id=speech.id, start_time=Decimal("0"), end_time=Decimal("1")))
        await segs.create(owner, asset.id, SegmentCreate(label_id=speech.id, start_time=Decimal("2"), end_time=Decimal("3")))
        kept = await segs.create(owner, asset.id, SegmentCreate(label_id=music.id, start_time=Decimal("0"), end_time=Decimal("4")))

        assert await service.delete(owner, speech.id) == 2

        remaining = (await session.execute(select(Segment.id))).scalars().all()
        assert remaining == [kept.id]
        assert [lb.name for lb in await service.list(owner, asset.id)] == ["Music"]
        assert (await session.execute(select(func.count()).select_from(Segment))).scalar_one() == 1

    async def test_delete_takes_regions_with_it(self, session, service, owner, make_image, make_label):
        image = await make_image(owner)
        car = await make_label(owner, image, "Car", "#22c55e")
        await RegionService(session).create(
            owner, image.id,
            RegionCreate(label_id=car.id, x=Decimal("0"), y=Decimal("0"), width=Decimal("30"), height=Decimal("15")),
        )

        assert await service.delete(owner, car.id) == 1
        assert (await session.execute(select(func.count()).select_from(Region))).scalar_one() == 0

    async def test_deactivated_label_still_annotates(self, session, service, owner, make_audio, make_label):
        asset = await make_audio(owner)
        label = await make_label(owner, asset)
        await service.deactivate(owner, label.id)

        segs = SegmentService(session)
        await segs.create(owner, asset.id, SegmentCreate(label_id=label.id, start_time=Decimal("1"), end_time=Decimal("2")))
        [seg] = await segs.list(owner, asset.id)
        assert seg.label.color == "#ef4444"
