import logging
import uuid
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.base import utcnow
from app.core.errors import InvalidTransitionError, ValidationError
from app.core.security import Principal
from app.modules.assets import lifecycle
from app.modules.assets.schemas import AssetOut
from app.modules.assets.service import AUDIO, AssetService
from app.modules.audit.service import AuditService
from app.modules.exports.renderers import RENDERERS, artifact_filename
from app.modules.exports.schemas import ExportArtifact, ExportSnapshot
from app.modules.labels.repository import LabelRepository
from app.modules.labels.schemas import LabelOut
from app.modules.regions import service as regions
from app.modules.regions.repository import RegionRepository
from app.modules.segments import service as segments
from app.modules.segments.repository import SegmentRepository

logger = logging.getLogger(__name__)

class ExportService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.assets = AssetService(session)

    async def _snapshot_isolation(self) -> None:
        # SQLite serializes writers already; Postgres needs one stable view for every read below
        if self.session.bind.dialect.name == "postgresql":
            await self.session.connection(execution_options={"isolation_level": "REPEATABLE READ"})

    async def snapshot(self, principal: Principal, asset_id: uuid.UUID) -> ExportSnapshot:
        asset = await self.assets.get_owned(principal, asset_id)
        label_rows = await LabelRepository(self.session).list_for_asset(asset.id)
        snap = ExportSnapshot(
            asset=AssetOut.model_validate(asset),
            labels=[LabelOut.model_validate(lb).model_copy(update={"usage_count": n}) for lb, n in label_rows],
            taken_at=utcnow(),
        )
        if asset.kind == AUDIO:
            rows = await SegmentRepository(self.session).list_for_asset(asset.id)
            snap.segments = [segments.to_out(seg, lb) for seg, lb in rows]
        else:
            rows = await RegionRepository(self.session).list_for_asset(asset.id)
            snap.regions = [regions.to_out(reg, lb) for reg, lb in rows]
        return snap

    async def export(
        self,
        principal: Principal,
        asset_id: uuid.UUID,
        fmt: str = "json",
        request: Request | None = None,
    ) -> ExportArtifact:
        """
        Mark the asset exported and render its annotations, all in one transaction.
        A failure anywhere leaves the asset's status untouched.
        """
        renderer = RENDERERS.get((fmt or "").lower())
        if renderer is None:
            raise ValidationError(f"Unsupported export format '{fmt}'", field="format")

        await self._snapshot_isolation()
        asset = await self.assets.get_owned(principal, asset_id)
        if not lifecycle.can_transition(asset.status, lifecycle.EXPORTED):
            raise InvalidTransitionError(
                f"Cannot export an asset in status '{asset.status}'", field="status"
            )

        try:
            await self.assets.mark_exported(principal, asset_id, commit=False)
            snap = await self.snapshot(principal, asset_id)
            content, media_type, ext = renderer(snap)
            await AuditService(self.session).log(
                principal.org_id, principal.user_id, "export", "asset", str(asset_id),
                purpose=fmt.lower(), request=request,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("asset %s exported as %s (%d bytes)", asset_id, fmt, len(content))
        return ExportArtifact(
            filename=artifact_filename(snap, ext),
            media_type=media_type,
            content=content,
            snapshot=snap,
        )
