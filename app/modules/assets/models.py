import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, BigInteger, Numeric, JSON, TIMESTAMP, Index
from app.core.base import Base, TimestampedTenantMixin, utcnow

class MediaAsset(Base, TimestampedTenantMixin):
    __table_args__ = (
        Index("ix_mediaasset_owner_status", "owner_id", "status"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(index=True)
    kind: Mapped[str] = mapped_column(String(8))  # audio | image

    # File identity. stored_filename is random and globally unique; storage_path is the object key.
    original_filename: Mapped[str] = mapped_column(String(255))
    stored_filename: Mapped[str] = mapped_column(String(64), unique=True)
    storage_path: Mapped[str] = mapped_column(String(512))
    mime_type: Mapped[str] = mapped_column(String(100))
    size_bytes: Mapped[int] = mapped_column(BigInteger)

    duration_seconds: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)  # audio
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)   # image, pixels
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)  # image, pixels
    # `metadata` is reserved on declarative models
    asset_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)  # bitrate, sample_rate, channels, codec, ...

    status: Mapped[str] = mapped_column(String(16), default="draft")  # draft, labeled, exported
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)
    labeled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    exported_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
