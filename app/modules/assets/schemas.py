import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import AliasChoices, BaseModel, Field

class AssetUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    description: str | None = None

class AssetOut(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    owner_id: uuid.UUID
    kind: str
    original_filename: str
    stored_filename: str
    mime_type: str
    size_bytes: int
    duration_seconds: Decimal | None
    width: int | None
    height: int | None
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("asset_metadata", "metadata"))
    status: str
    title: str | None
    description: str | None
    uploaded_at: datetime
    labeled_at: datetime | None
    exported_at: datetime | None
    created_at: datetime
    updated_at: datetime | None

    class Config:
        from_attributes = True

class AssetUploadOut(AssetOut):
    download_url: str

class AssetStatisticsOut(BaseModel):
    total: int
    draft: int
    labeled: int
    exported: int

class AssetSummaryOut(BaseModel):
    asset_id: uuid.UUID
    kind: str
    status: str
    total_labels: int
    total_segments: int = 0
    total_labeled_duration: Decimal = Decimal("0")
    coverage_percentage: float = 0.0
    total_regions: int = 0
