import uuid
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Text, Numeric, ForeignKey, CheckConstraint, Index
from app.core.base import Base, TimestampedTenantMixin

class Segment(Base, TimestampedTenantMixin):
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_segment_range"),
        Index("ix_segment_asset_start", "asset_id", "start_time"),
    )

    asset_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("mediaasset.id", ondelete="CASCADE"))
    label_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("label.id", ondelete="CASCADE"), index=True)
    start_time: Mapped[Decimal] = mapped_column(Numeric(10, 3))  # seconds
    end_time: Mapped[Decimal] = mapped_column(Numeric(10, 3))
    # end_time - start_time; written only by SegmentService alongside start/end
    duration: Mapped[Decimal] = mapped_column(Numeric(10, 3))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
