"""API request/response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class RegisterRequest(BaseModel):
    """유저 등록 요청"""

    name: str = Field(..., min_length=1, max_length=50, description="Display name")


class PostRequest(BaseModel):
    """게시글 작성 요청"""

    author_id: int
    body: str = ""
    thread_id: Optional[int] = None
    has_media: bool = False
    posted_at: Optional[datetime] = Field(
        None, description="Defaults to the server clock"
    )


class ReactionRequest(BaseModel):
    user_id: int = Field(..., description="Acting user")
    drop_id: int = Field(..., description="Reaction drop to spend")


class EquipRequest(BaseModel):
    user_id: int
    drop_id: int
    slot: str = Field(..., description="profile_pic, background or badge")


class UnequipRequest(BaseModel):
    user_id: int
    slot: str
    drop_id: Optional[int] = Field(None, description="Badge to remove; None clears the slot")


class GiftRequest(BaseModel):
    from_user: int
    to_user: int
    drop_id: int


class TradeProposeRequest(BaseModel):
    sender_id: int
    receiver_id: int
    sender_items: list[int] = Field(default_factory=list)
    receiver_items: list[int] = Field(default_factory=list)
    note: Optional[str] = None


class TradeActionRequest(BaseModel):
    user_id: int = Field(..., description="Acting user")


# === Response Schemas ===


class SlotsInfo(BaseModel):
    profile_pic: Optional[int] = None
    background: Optional[int] = None
    badges: list[int] = []


class LevelInfoResponse(BaseModel):
    level: int
    experience: int
    level_start: int
    next_level_at: int
    progress: float


class UserInfo(BaseModel):
    user_id: int
    name: str
    experience: int
    level: int
    last_reward: Optional[datetime] = None
    slots: SlotsInfo


class ItemInfo(BaseModel):
    item_id: int
    name: str
    description: str
    rarity: str
    kind: dict[str, Any]
    attributes: dict[str, Any] = {}


class DropInfo(BaseModel):
    drop_id: int
    owner_id: int
    item_id: int
    pattern: int
    consumed: bool


class PostInfo(BaseModel):
    post_id: int
    author_id: int
    thread_id: Optional[int] = None
    body: str
    has_media: bool
    posted_at: datetime
    reward_drop_id: Optional[int] = None


class PostResponse(BaseModel):
    post: PostInfo
    reward: Optional[DropInfo] = None


class ReactionResponse(BaseModel):
    post_id: int
    drop_id: int
    author_id: int
    experience_delta: int
    experience: int
    level: int


class TradeOfferInfo(BaseModel):
    offer_id: int
    sender_id: int
    receiver_id: int
    sender_items: list[int]
    receiver_items: list[int]
    status: str
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class ErrorResponse(BaseModel):
    """에러 응답 body"""

    error: str
    message: str
