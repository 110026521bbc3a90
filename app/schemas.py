"""Pydantic schemas for request/response validation."""
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


# ============================================================================
# Announcement Bar Schemas
# ============================================================================

DEFAULT_BACKGROUND_COLOR = "#000000"
DEFAULT_TEXT_COLOR = "#ffffff"


class AnnouncementBar(BaseModel):
    """One announcement bar as stored in the shop metafield.

    Field names are serialized in camelCase, which is the stored JSON shape
    read by the storefront.
    """
    id: str
    text: str = ""
    background_color: str = Field(DEFAULT_BACKGROUND_COLOR, alias="backgroundColor")
    text_color: str = Field(DEFAULT_TEXT_COLOR, alias="textColor")
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    enabled: bool = True
    dismissible: bool = True
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class BarStatus(str, Enum):
    DISABLED = "Disabled"
    SCHEDULED = "Scheduled"
    ACTIVE = "Active"
    EXPIRED = "Expired"


class AnnouncementBarResponse(AnnouncementBar):
    status: BarStatus
    status_message: Optional[str] = None


class AnnouncementListResponse(BaseModel):
    bars: List[AnnouncementBarResponse] = []
    digest: Optional[str] = None


class SaveAnnouncementsResponse(BaseModel):
    success: bool
    saved: int


# ============================================================================
# Editor Schemas
# ============================================================================

class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class MoveBarRequest(BaseModel):
    index: int
    direction: MoveDirection


class EditorStateResponse(BaseModel):
    shop: str
    bars: List[AnnouncementBarResponse] = []
    dirty: bool = False
    digest: Optional[str] = None


class DiscardEditorResponse(BaseModel):
    shop: str
    discarded_unsaved_changes: bool

