import logging
import uuid
from decimal import Decimal
from typing import Sequence
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import ConstraintViolation, NotFoundError, ValidationError
from app.core.numeric import to_fixed
from app.core.security import Principal
from app.modules.assets import lifecycle
from app.modules.assets.models import MediaAsset
from app.modules.assets.service import IMAGE, AssetService
from app.modules.labels.models import Label
from app.modules.labels.schemas import LabelRef
from app.modules.labels.service import LabelService
from app.modules.regions.models import Region
from app.modules.regions.repository import RegionRepository
from app.modules.regions.schemas import RegionCreate, RegionOut, RegionUpdate

logger = logging.getLogger(__name__)

COORD_PLACES = 2
BOX_FIELDS = ("x", "y", "width", "height")

def check_box(x, y, width, height) -> dict[str, Decimal]:
    box = {
        "x": to_fixed(x, COORD_PLACES, "x"),
        "y": to_fixed(y, COORD_PLACES, "y"),
        "width": to_fixed(width, COORD_PLACES, "width"),
        "height": to_fixed(height, COORD_PLACES, "height"),
    }
    if box["width"] <= 0:
        raise ValidationError("Width must be positive", field="width")
    if box["height"] <= 0:
        raise ValidationError("Height must be positive", field="height")
    if box["x"] < 0:
        raise ValidationError("x cannot be negative", field="x")
    if box["y"] < 0:
        raise ValidationError("y cannot be negative", field="y")
    return box

def out_of_bounds(asset: MediaAsset, box: dict[str, Decimal]) -> bool:
    # unknown image size means there is nothing to compare against
    if asset.width is None or asset.height is None:
        return False
    return box["x"] + box["width"] > asset.width or box["y"] + box["height"] > asset.height

def to_out(region: Region, label: Label | None) -> RegionOut:
    out = RegionOut.model_validate(region)
    if label is not None:
        out.label = LabelRef.model_validate(label)
    return out

class RegionService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = RegionRepository(session)
        self.assets = AssetService(session)
        self.labels = LabelService(session)

    async def _image_asset(self, principal: Principal, asset_id: uuid.UUID) -> MediaAsset:
        asset = await self.assets.get_owned(principal, asset_id)
        if asset.kind != IMAGE:
            raise ValidationError("Regions can only be added to image assets", field="asset_id")
        return asset

    async def _get_owned(self, principal: Principal, region_id: uuid.UUID) -> tuple[Region, MediaAsset]:
        region = await self.repo.get(principal.org_id, region_id)
        if not region:
            raise NotFoundError("Region not found")
        asset = await self._image_asset(principal, region.asset_id)
        return region, asset

    def _checked_box(self, asset: MediaAsset, x, y, width, height) -> dict[str, Decimal]:
        box = check_box(x, y, width, height)
        if out_of_bounds(asset, box):
            logger.warning(
                "region on asset %s extends past the %sx%s image: %s",
                asset.id, asset.width, asset.height, box,
            )
        return box

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            msg = str(e.orig)
            if "ck_region_positive" in msg:
                raise ValidationError("Width and height must be positive", field="width") from e
            if "ck_region_origin" in msg:
                raise ValidationError("x and y cannot be negative", field="x") from e
            raise ConstraintViolation("Region references a label or asset that no longer exists", field="label_id") from e

    async def create(self, principal: Principal, asset_id: uuid.UUID, payload: RegionCreate) -> RegionOut:
        asset = await self._image_asset(principal, asset_id)
        label = await self.labels.require_for_asset(principal, asset, payload.label_id)
        box = self._checked_box(asset, payload.x, payload.y, payload.width, payload.height)

        region = Region(org_id=principal.org_id, asset_id=asset.id, label_id=label.id, notes=payload.notes, **box)
        self.session.add(region)
        await self._commit()
        return to_out(region, label)

    async def list(self, principal: Principal, asset_id: uuid.UUID, *, label_id: uuid.UUID | None = None) -> list[RegionOut]:
        asset = await self._image_asset(principal, asset_id)
        rows = await self.repo.list_for_asset(asset.id, label_id=label_id)
        return [to_out(region, label) for region, label in rows]

    async def update(self, principal: Principal, region_id: uuid.UUID, payload: RegionUpdate) -> RegionOut:
        region, asset = await self._get_owned(principal, region_id)
        data = payload.model_dump(exclude_unset=True)

        label_id = data.get("label_id") or region.label_id
        label = await self.labels.require_for_asset(principal, asset, label_id)
        merged = {f: data[f] if data.get(f) is not None else getattr(region, f) for f in BOX_FIELDS}
        box = self._checked_box(asset, **merged)

        for k, v in box.items():
            setattr(region, k, v)
        region.label_id = label.id
        if "notes" in data:
            region.notes = data["notes"]
        await self._commit()
        return to_out(region, label)

    async def delete(self, principal: Principal, region_id: uuid.UUID) -> None:
        region, _ = await self._get_owned(principal, region_id)
        await self.repo.delete(region)
        await self.session.commit()

    async def replace_all(self, principal: Principal, asset_id: uuid.UUID, items: Sequence[RegionCreate]) -> Sequence[RegionOut]:
        """Swap the asset's whole region set in one transaction; non-empty sets mark the asset labeled."""
        asset = await self._image_asset(principal, asset_id)

        prepared: list[tuple[RegionCreate, Label, dict[str, Decimal]]] = []
        for item in items:
            label = await self.labels.require_for_asset(principal, asset, item.label_id)
            prepared.append((item, label, self._checked_box(asset, item.x, item.y, item.width, item.height)))

        await self.repo.delete_for_asset(asset.id)
        for item, label, box in prepared:
            self.session.add(Region(org_id=principal.org_id, asset_id=asset.id, label_id=label.id, notes=item.notes, **box))
        if prepared:
            lifecycle.transition(asset, lifecycle.LABELED)
        await self._commit()
        logger.info("asset %s regions replaced (%d)", asset.id, len(prepared))
        return await self.list(principal, asset.id)
