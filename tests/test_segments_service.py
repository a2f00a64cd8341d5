"""
Tests for SegmentService.
"""

import typing
import uuid
from decimal import Decimal

import pytest

from app.core.errors import AuthorizationError, ConstraintViolation, InvalidRangeError, LabelAssetMismatch, NotFoundError, ValidationError
from app.modules.assets.service import AssetService
from app.modules.segments.models import Segment
from app.modules.segments.schemas import SegmentCreate, SegmentOut, SegmentUpdate
from app.modules.segments.service import SegmentService, check_range

D = Decimal

class TestSegmentService:

    @pytest.fixture
    def service(self, session):
        return SegmentService(session)

    @pytest.fixture
    async def audio(self, owner, make_audio):
        return await make_audio(owner)

    @pytest.fixture
    async def speech(self, owner, audio, make_label):
        return await make_label(owner, audio, "Speech", "#ef4444")

    async def test_create_and_list(self, service, owner, audio, speech):
        await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("2.000"), end_time=D("5.250")))

        segments = await service.list(owner, audio.id)
        assert len(segments) == 1
        seg = segments[0]
        assert seg.duration == D("3.250")
        assert seg.label.name == "Speech"
        assert seg.label.color == "#ef4444"

    async def test_inverted_range_is_rejected(self, service, owner, audio, speech):
        await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("2"), end_time=D("5.25")))

        with pytest.raises(InvalidRangeError) as ei:
            await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("5"), end_time=D("3")))
        assert ei.value.field == "end_time"
        assert len(await service.list(owner, audio.id)) == 1

    def test_check_range_rounds_before_comparing(self):
        assert check_range("1.0004", "1.0005") == (D("1.000"), D("1.001"))
        with pytest.raises(InvalidRangeError):
            check_range("1.0001", "1.0004")
        with pytest.raises(ValidationError) as ei:
            check_range("-0.5", "1")
        assert ei.value.field == "start_time"
        with pytest.raises(ValidationError):
            check_range("NaN", "1")

    async def test_segments_only_on_audio(self, service, owner, make_image, make_label):
        image = await make_image(owner)
        label = await make_label(owner, image, "Object")
        with pytest.raises(ValidationError) as ei:
            await service.create(owner, image.id, SegmentCreate(label_id=label.id, start_time=D("0"), end_time=D("1")))
        assert ei.value.field == "asset_id"

    async def test_label_must_belong_to_the_asset(self, service, owner, audio, make_audio, make_label):
        other = await make_audio(owner)
        foreign = await make_label(owner, other, "Speech")
        with pytest.raises(LabelAssetMismatch):
            await service.create(owner, audio.id, SegmentCreate(label_id=foreign.id, start_time=D("0"), end_time=D("1")))

    async def test_unknown_label(self, service, owner, audio):
        with pytest.raises(NotFoundError) as ei:
            await service.create(owner, audio.id, SegmentCreate(label_id=uuid.uuid4(), start_time=D("0"), end_time=D("1")))
        assert ei.value.field == "label_id"

    async def test_overlap_is_allowed(self, service, owner, audio, speech, make_label):
        noise = await make_label(owner, audio, "Noise", "#6b7280")
        await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("0"), end_time=D("10")))
        await service.create(owner, audio.id, SegmentCreate(label_id=noise.id, start_time=D("4"), end_time=D("6")))
        segs = await service.list(owner, audio.id)
        assert [s.start_time for s in segs] == [D("0.000"), D("4.000")]
        assert len(await service.list(owner, audio.id, label_id=noise.id)) == 1

    async def test_past_recorded_duration_only_warns(self, service, owner, audio, speech, caplog):
        seg = await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("119"), end_time=D("130")))
        assert seg.end_time == D("130.000")
        assert "past the recorded duration" in caplog.text

    async def test_update_recomputes_duration(self, service, owner, audio, speech):
        seg = await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("1"), end_time=D("2")))
        updated = await service.update(owner, seg.id, SegmentUpdate(end_time=D("4.5"), notes="laughter"))
        assert (updated.start_time, updated.end_time, updated.duration) == (D("1.000"), D("4.500"), D("3.500"))
        assert updated.notes == "laughter"

    async def test_one_sided_update_cannot_invert_range(self, service, owner, audio, speech):
        seg = await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("3"), end_time=D("6")))
        with pytest.raises(InvalidRangeError):
            await service.update(owner, seg.id, SegmentUpdate(start_time=D("7")))
        [stored] = await service.list(owner, audio.id)
        assert (stored.start_time, stored.end_time) == (D("3.000"), D("6.000"))

    async def test_delete(self, service, owner, stranger, audio, speech):
        seg = await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("0"), end_time=D("1")))
        with pytest.raises(AuthorizationError):
            await service.delete(stranger, seg.id)
        await service.delete(owner, seg.id)
        assert await service.list(owner, audio.id) == []
        with pytest.raises(NotFoundError):
            await service.delete(owner, seg.id)

    async def test_replace_all_swaps_set_and_marks_labeled(self, session, service, owner, audio, speech):
        await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("0"), end_time=D("1")))

        result = await service.replace_all(owner, audio.id, [
            SegmentCreate(label_id=speech.id, start_time=D("10"), end_time=D("12")),
            SegmentCreate(label_id=speech.id, start_time=D("3"), end_time=D("4")),
        ])
        assert [(s.start_time, s.end_time) for s in result] == [(D("3.000"), D("4.000")), (D("10.000"), D("12.000"))]
        asset = await AssetService(session).get_owned(owner, audio.id)
        assert asset.status == "labeled"
        assert asset.labeled_at is not None

    async def test_replace_all_is_all_or_nothing(self, session, service, owner, audio, speech):
        await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("0"), end_time=D("1")))
        with pytest.raises(InvalidRangeError):
            await service.replace_all(owner, audio.id, [
                SegmentCreate(label_id=speech.id, start_time=D("2"), end_time=D("3")),
                SegmentCreate(label_id=speech.id, start_time=D("9"), end_time=D("8")),
            ])
        segs = await service.list(owner, audio.id)
        assert [(s.start_time, s.end_time) for s in segs] == [(D("0.000"), D("1.000"))]
        assert (await AssetService(session).get_owned(owner, audio.id)).status == "draft"

    async def test_replace_with_empty_set_clears(self, session, service, owner, audio, speech):
        await service.create(owner, audio.id, SegmentCreate(label_id=speech.id, start_time=D("0"), end_time=D("1")))
        assert await service.replace_all(owner, audio.id, []) == []
        assert (await AssetService(session).get_owned(owner, audio.id)).status == "draft"

    def test_replace_all_annotations_resolve(self):
        hints = typing.get_type_hints(SegmentService.replace_all)
        assert hints["items"] == typing.Sequence[SegmentCreate]
        assert hints["return"] == typing.Sequence[SegmentOut]

    async def test_commit_maps_range_check(self, session, service, audio, speech):
        session.add(Segment(asset_id=audio.id, label_id=speech.id, start_time=D("4"), end_time=D("2"), duration=D("-2")))
        with pytest.raises(InvalidRangeError) as ei:
            await service._commit()
        assert ei.value.field == "end_time"

    async def test_commit_maps_missing_label(self, session, service, audio):
        session.add(Segment(asset_id=audio.id, label_id=uuid.uuid4(), start_time=D("1"), end_time=D("2"), duration=D("1")))
        with pytest.raises(ConstraintViolation) as ei:
            await service._commit()
        assert not isinstance(ei.value, InvalidRangeError)
        assert ei.value.field == "label_id"
