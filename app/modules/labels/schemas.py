import uuid
from datetime import datetime
from pydantic import BaseModel, Field

COLOR_PATTERN = "^#[0-9A-Fa-f]{6}$"

class LabelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str
    description: str | None = Field(default=None, max_length=500)

class LabelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = None
    description: str | None = Field(default=None, max_length=500)

class LabelOut(BaseModel):
    id: uuid.UUID
    asset_id: uuid.UUID
    name: str
    color: str
    description: str | None
    is_active: bool
    usage_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True

class LabelRef(BaseModel):
    """Label fields embedded in annotation listings for rendering."""
    id: uuid.UUID
    name: str
    color: str

    class Config:
        from_attributes = True
