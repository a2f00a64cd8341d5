from datetime import datetime
from pydantic import BaseModel, Field
from app.modules.assets.schemas import AssetOut
from app.modules.labels.schemas import LabelOut
from app.modules.regions.schemas import RegionOut
from app.modules.segments.schemas import SegmentOut

class ExportSnapshot(BaseModel):
    """Asset, labels and annotations as read inside one transaction."""
    asset: AssetOut
    labels: list[LabelOut] = Field(default_factory=list)
    segments: list[SegmentOut] = Field(default_factory=list)
    regions: list[RegionOut] = Field(default_factory=list)
    taken_at: datetime

class ExportArtifact(BaseModel):
    filename: str
    media_type: str
    content: bytes
    snapshot: ExportSnapshot
