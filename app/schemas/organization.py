from datetime import datetime
from pydantic import BaseModel, Field
from app.models.organization import MemberRole


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class AddMemberRequest(BaseModel):
    user_id: str
    role: MemberRole = MemberRole.MEMBER


class MemberResponse(BaseModel):
    user_id: str
    email: str | None = None
    role: str
    joined_at: datetime


class OrganizationSettings(BaseModel):
    max_storage_gb: int
    max_video_length: int
    allowed_formats: list[str]
    moderation_enabled: bool
    streaming_enabled: bool


class OrganizationSubscription(BaseModel):
    plan: str
    status: str
    start_date: datetime
    end_date: datetime | None


class OrganizationResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None
    owner_id: str
    is_active: bool
    members: list[MemberResponse]
    settings: OrganizationSettings
    subscription: OrganizationSubscription
    created_at: datetime
    updated_at: datetime
