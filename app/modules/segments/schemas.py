import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from app.modules.labels.schemas import LabelRef

class SegmentCreate(BaseModel):
    label_id: uuid.UUID
    start_time: Decimal
    end_time: Decimal
    notes: str | None = Field(default=None, max_length=1000)

class SegmentUpdate(BaseModel):
    label_id: uuid.UUID | None = None
    start_time: Decimal | None = None
    end_time: Decimal | None = None
    notes: str | None = Field(default=None, max_length=1000)

class SegmentReplace(BaseModel):
    segments: list[SegmentCreate]

class SegmentOut(BaseModel):
    id: uuid.UUID
    asset_id: uuid.UUID
    label_id: uuid.UUID
    start_time: Decimal
    end_time: Decimal
    duration: Decimal
    notes: str | None
    label: LabelRef | None = None
    created_at: datetime

    class Config:
        from_attributes = True
