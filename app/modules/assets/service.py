import io
import logging
import mimetypes
import re
import secrets
import tempfile
import uuid
from decimal import Decimal
from pathlib import PurePath
import librosa
from fastapi import Request
from PIL import Image, UnidentifiedImageError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.base import utcnow
from app.core.config import settings
from app.core.numeric import to_fixed
from app.core.errors import (
    DuplicateStoredFilename, NotFoundError, StorageError, ValidationError,
)
from app.core.security import Principal, ensure_owner
from app.modules.assets import lifecycle
from app.modules.assets.models import MediaAsset
from app.modules.assets.repository import AssetRepository
from app.modules.assets.schemas import AssetStatisticsOut, AssetSummaryOut, AssetUpdate
from app.modules.audit.service import AuditService
from app.platform.provider_registry import registry

logger = logging.getLogger(__name__)

AUDIO = "audio"
IMAGE = "image"

_EXT_RE = re.compile(r"[a-z0-9]{1,10}")

def detect_kind(content_type: str | None, filename: str | None) -> tuple[str, str]:
    """Return (kind, mime_type) for an upload, or raise ValidationError."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if not mime or mime == "application/octet-stream":
        mime = (mimetypes.guess_type(filename or "")[0] or "").lower()
    if mime in settings.AUDIO_MIME_TYPES:
        return AUDIO, mime
    if mime in settings.IMAGE_MIME_TYPES:
        return IMAGE, mime
    raise ValidationError(f"Unsupported media type '{mime or 'unknown'}'", field="file")

def read_image_size(data: bytes) -> tuple[int | None, int | None]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        logger.warning("could not read image dimensions from upload")
        return None, None

def analyse_audio(data: bytes, filename: str, mime: str) -> tuple[Decimal | None, dict]:
    """Decode an upload with librosa and return (duration, {bitrate, sample_rate, channels, codec})."""
    suffix = PurePath(filename).suffix.lower()
    try:
        with tempfile.NamedTemporaryFile(suffix=suffix) as tmp:
            tmp.write(data)
            tmp.flush()
            y, sr = librosa.load(tmp.name, sr=None, mono=False)
        seconds = librosa.get_duration(y=y, sr=sr)
    except Exception as e:
        logger.warning("could not analyse audio upload %s: %s", filename, e)
        return None, {}
    if seconds <= 0:
        logger.warning("audio upload %s decoded to no samples", filename)
        return None, {}
    return to_fixed(seconds, 2, "duration_seconds"), {
        "bitrate": int(len(data) * 8 / seconds),
        "sample_rate": int(sr),
        "channels": 1 if y.ndim == 1 else int(y.shape[0]),
        "codec": mime.split("/")[-1].removeprefix("x-"),
    }

def _stored_filename(original: str) -> str:
    ext = PurePath(original).suffix.lower().lstrip(".")
    # token (40) + "." + ext must fit the 64-char column; odd extensions are dropped
    if not _EXT_RE.fullmatch(ext):
        ext = ""
    token = secrets.token_hex(20)
    return f"{token}.{ext}" if ext else token

class AssetService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AssetRepository(session)

    # ---- Lookup ----
    async def get_owned(self, principal: Principal, asset_id: uuid.UUID) -> MediaAsset:
        obj = await self.repo.get(principal.org_id, asset_id)
        if not obj:
            raise NotFoundError("Asset not found")
        ensure_owner(obj.owner_id, principal)
        return obj

    async def list(self, principal: Principal, **filters):
        return await self.repo.list(principal.org_id, principal.user_id, **filters)

    async def statistics(self, principal: Principal) -> AssetStatisticsOut:
        counts = await self.repo.count_by_status(principal.org_id, principal.user_id)
        return AssetStatisticsOut(
            total=sum(counts.values()),
            draft=counts.get(lifecycle.DRAFT, 0),
            labeled=counts.get(lifecycle.LABELED, 0),
            exported=counts.get(lifecycle.EXPORTED, 0),
        )

    async def summary(self, principal: Principal, asset_id: uuid.UUID) -> AssetSummaryOut:
        obj = await self.get_owned(principal, asset_id)
        out = AssetSummaryOut(
            asset_id=obj.id, kind=obj.kind, status=obj.status,
            total_labels=await self.repo.label_count(obj.id),
        )
        if obj.kind == AUDIO:
            count, total = await self.repo.segment_totals(obj.id)
            out.total_segments = count
            out.total_labeled_duration = total
            if obj.duration_seconds:
                out.coverage_percentage = round(float(total / obj.duration_seconds * 100), 2)
        else:
            out.total_regions = await self.repo.region_count(obj.id)
        return out

    def download_url(self, obj: MediaAsset) -> str:
        return registry.object_storage().presign_download(obj.storage_path, expires_seconds=settings.DOWNLOAD_URL_EXPIRES_SECONDS)

    # ---- Upload ----
    async def create(
        self,
        principal: Principal,
        *,
        data: bytes,
        filename: str,
        content_type: str | None,
        title: str | None = None,
        description: str | None = None,
        duration_seconds: Decimal | None = None,
        width: int | None = None,
        height: int | None = None,
        metadata: dict | None = None,
    ) -> MediaAsset:
        if not data:
            raise ValidationError("Uploaded file is empty", field="file")
        if len(data) > settings.MAX_UPLOAD_BYTES:
            raise ValidationError(f"File too large (>{settings.MAX_UPLOAD_BYTES} bytes)", field="file")
        kind, mime = detect_kind(content_type, filename)
        if kind == IMAGE and (width is None or height is None):
            width, height = read_image_size(data)
        if kind == AUDIO:
            width = height = None
            # values sent by the caller win over what the decoder reports
            if duration_seconds is None or metadata is None:
                found, info = analyse_audio(data, filename, mime)
                if duration_seconds is None:
                    duration_seconds = found
                metadata = {**info, **(metadata or {})} or None
        else:
            duration_seconds = None

        stored = _stored_filename(filename)
        while await self.repo.stored_filename_taken(stored):
            stored = _stored_filename(filename)
        key = f"{kind}-assets/{principal.user_id}/{stored}"

        storage = registry.object_storage()
        try:
            storage.put_bytes(key, data, content_type=mime)
        except StorageError:
            raise
        except Exception as e:
            logger.error("storage write failed for %s: %s", key, e)
            raise StorageError(f"Could not store uploaded file: {e}") from e
        logger.info("stored %s upload %s (%d bytes)", kind, key, len(data))

        try:
            obj = await self.repo.create(
                principal.org_id,
                owner_id=principal.user_id,
                kind=kind,
                original_filename=filename,
                stored_filename=stored,
                storage_path=key,
                mime_type=mime,
                size_bytes=len(data),
                duration_seconds=duration_seconds,
                width=width,
                height=height,
                asset_metadata=metadata,
                status=lifecycle.DRAFT,
                title=title or PurePath(filename).stem,
                description=description,
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            storage.delete(key)
            raise DuplicateStoredFilename("Stored filename already exists", field="stored_filename") from e
        except Exception:
            await self.session.rollback()
            storage.delete(key)
            raise
        return obj

    # ---- Metadata & lifecycle ----
    async def update_metadata(self, principal: Principal, asset_id: uuid.UUID, payload: AssetUpdate) -> MediaAsset:
        obj = await self.get_owned(principal, asset_id)
        for k, v in payload.model_dump(exclude_unset=True).items():
            setattr(obj, k, v)
        await self.session.commit()
        return obj

    async def mark_labeled(self, principal: Principal, asset_id: uuid.UUID) -> MediaAsset:
        obj = await self.get_owned(principal, asset_id)
        lifecycle.transition(obj, lifecycle.LABELED)
        await self.session.commit()
        return obj

    async def mark_exported(self, principal: Principal, asset_id: uuid.UUID, *, commit: bool = True) -> MediaAsset:
        obj = await self.get_owned(principal, asset_id)
        lifecycle.transition(obj, lifecycle.EXPORTED)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()
        return obj

    # ---- Deletion ----
    async def soft_delete(self, principal: Principal, asset_id: uuid.UUID, request: Request | None = None) -> None:
        obj = await self.get_owned(principal, asset_id)
        obj.deleted_at = utcnow()
        await AuditService(self.session).log(
            principal.org_id, principal.user_id, "delete", "asset", str(obj.id),
            purpose="soft_delete", request=request,
        )
        await self.session.commit()
        logger.info("asset %s tombstoned", obj.id)

    async def purge(self, principal: Principal, asset_id: uuid.UUID, request: Request | None = None) -> None:
        """Hard delete: rows owned by the asset go, then the blob. Tombstoned assets can be purged."""
        obj = await self.repo.get(principal.org_id, asset_id, include_deleted=True)
        if not obj:
            raise NotFoundError("Asset not found")
        ensure_owner(obj.owner_id, principal)
        key, purged_id = obj.storage_path, obj.id
        await self.repo.purge(obj)
        await AuditService(self.session).log(
            principal.org_id, principal.user_id, "delete", "asset", str(purged_id),
            purpose="purge", request=request,
        )
        await self.session.commit()
        try:
            registry.object_storage().delete(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Asset rows purged but blob removal failed: {e}") from e
        logger.info("asset %s purged", purged_id)
