import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from app.modules.labels.schemas import LabelRef

class RegionCreate(BaseModel):
    label_id: uuid.UUID
    x: Decimal
    y: Decimal
    width: Decimal
    height: Decimal
    notes: str | None = Field(default=None, max_length=1000)

class RegionUpdate(BaseModel):
    label_id: uuid.UUID | None = None
    x: Decimal | None = None
    y: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None
    notes: str | None = Field(default=None, max_length=1000)

class RegionReplace(BaseModel):
    regions: list[RegionCreate]

class RegionOut(BaseModel):
    id: uuid.UUID
    asset_id: uuid.UUID
    label_id: uuid.UUID
    x: Decimal
    y: Decimal
    width: Decimal
    height: Decimal
    notes: str | None
    label: LabelRef | None = None
    created_at: datetime

    class Config:
        from_attributes = True
