import uuid
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Text, Numeric, ForeignKey, CheckConstraint, Index
from app.core.base import Base, TimestampedTenantMixin

class Region(Base, TimestampedTenantMixin):
    """Axis-aligned box in image pixels, origin at the top-left corner."""
    __table_args__ = (
        CheckConstraint("width > 0 AND height > 0", name="ck_region_positive"),
        CheckConstraint("x >= 0 AND y >= 0", name="ck_region_origin"),
        Index("ix_region_asset_label", "asset_id", "label_id"),
    )

    asset_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("mediaasset.id", ondelete="CASCADE"))
    label_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("label.id", ondelete="CASCADE"))
    x: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    y: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    width: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    height: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
