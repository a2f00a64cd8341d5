import logging
import re
import uuid
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import DuplicateLabelName, LabelAssetMismatch, NotFoundError, ValidationError
from app.core.security import Principal
from app.modules.assets.models import MediaAsset
from app.modules.assets.service import AssetService
from app.modules.labels.models import Label
from app.modules.labels.repository import LabelRepository
from app.modules.labels.schemas import COLOR_PATTERN, LabelCreate, LabelOut, LabelUpdate

logger = logging.getLogger(__name__)

_COLOR_RE = re.compile(COLOR_PATTERN)

def validate_color(color: str | None) -> str:
    if not color or not _COLOR_RE.fullmatch(color):
        raise ValidationError("Color must be a hex value like #RRGGBB", field="color")
    return color

def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Label name is required", field="name")
    return name

class LabelService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = LabelRepository(session)
        self.assets = AssetService(session)

    async def get_owned(self, principal: Principal, label_id: uuid.UUID) -> tuple[Label, MediaAsset]:
        """Label plus its asset; the asset must be live and owned by the principal."""
        label = await self.repo.get(principal.org_id, label_id)
        if not label:
            raise NotFoundError("Label not found")
        asset = await self.assets.get_owned(principal, label.asset_id)
        return label, asset

    async def create(self, principal: Principal, asset_id: uuid.UUID, payload: LabelCreate) -> Label:
        asset = await self.assets.get_owned(principal, asset_id)
        name = _clean_name(payload.name)
        color = validate_color(payload.color)
        if await self.repo.name_exists(asset.id, name):
            raise DuplicateLabelName(f"A label named '{name}' already exists for this asset", field="name")
        try:
            obj = await self.repo.create(
                principal.org_id, asset.id,
                name=name, color=color, description=payload.description,
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateLabelName(f"A label named '{name}' already exists for this asset", field="name") from e
        return obj

    async def list(self, principal: Principal, asset_id: uuid.UUID, *, active_only: bool = False) -> list[LabelOut]:
        asset = await self.assets.get_owned(principal, asset_id)
        rows = await self.repo.list_for_asset(asset.id, active_only=active_only)
        return [LabelOut.model_validate(label).model_copy(update={"usage_count": usage}) for label, usage in rows]

    async def update(self, principal: Principal, label_id: uuid.UUID, payload: LabelUpdate) -> Label:
        label, asset = await self.get_owned(principal, label_id)
        data = payload.model_dump(exclude_unset=True)
        if "name" in data:
            data["name"] = _clean_name(data["name"])
            if await self.repo.name_exists(asset.id, data["name"], exclude_id=label.id):
                raise DuplicateLabelName(f"A label named '{data['name']}' already exists for this asset", field="name")
        if "color" in data:
            data["color"] = validate_color(data["color"])
        for k, v in data.items():
            setattr(label, k, v)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateLabelName("A label with this name already exists for this asset", field="name") from e
        return label

    async def set_active(self, principal: Principal, label_id: uuid.UUID, active: bool | None) -> Label:
        """active=None flips the current flag."""
        label, _ = await self.get_owned(principal, label_id)
        label.is_active = (not label.is_active) if active is None else active
        await self.session.commit()
        return label

    async def deactivate(self, principal: Principal, label_id: uuid.UUID) -> Label:
        return await self.set_active(principal, label_id, False)

    async def activate(self, principal: Principal, label_id: uuid.UUID) -> Label:
        return await self.set_active(principal, label_id, True)

    async def toggle_active(self, principal: Principal, label_id: uuid.UUID) -> Label:
        return await self.set_active(principal, label_id, None)

    async def delete(self, principal: Principal, label_id: uuid.UUID) -> int:
        """Hard delete; returns how many annotations went with it."""
        label, _ = await self.get_owned(principal, label_id)
        removed = await self.repo.usage_count(label.id)
        await self.repo.delete(label)
        await self.session.commit()
        logger.info("label %s deleted with %d annotations", label_id, removed)
        return removed

    async def require_for_asset(self, principal: Principal, asset: MediaAsset, label_id: uuid.UUID) -> Label:
        """Resolve a label an annotation will reference; it must belong to `asset`."""
        label = await self.repo.get(principal.org_id, label_id)
        if not label:
            raise NotFoundError("Label not found", field="label_id")
        if label.asset_id != asset.id:
            raise LabelAssetMismatch("Label belongs to a different asset", field="label_id")
        return label
