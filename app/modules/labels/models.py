import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, ForeignKey, UniqueConstraint, Index
from app.core.base import Base, TimestampedTenantMixin

class Label(Base, TimestampedTenantMixin):
    """A named, colored category owned by exactly one asset."""
    __table_args__ = (
        UniqueConstraint("asset_id", "name", name="uq_label_asset_name"),
        Index("ix_label_asset_active", "asset_id", "is_active"),
    )

    asset_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("mediaasset.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(100))
    color: Mapped[str] = mapped_column(String(7))  # #RRGGBB
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # inactive labels stay valid targets; they are only hidden from pickers
    is_active: Mapped[bool] = mapped_column(default=True)
