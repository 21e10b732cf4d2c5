"""Organization (optional grouping of users and videos) and its memberships."""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Boolean, Integer, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class MemberRole(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class SubscriptionPlan(str, enum.Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


DEFAULT_ALLOWED_FORMATS = ["mp4", "mov", "avi", "mkv"]


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    description = Column(String(500), nullable=True)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # settings
    max_storage_gb = Column(Integer, nullable=False, default=10)
    max_video_length = Column(Integer, nullable=False, default=3600)  # seconds
    allowed_formats = Column(JSON, nullable=False, default=lambda: list(DEFAULT_ALLOWED_FORMATS))
    moderation_enabled = Column(Boolean, nullable=False, default=True)
    streaming_enabled = Column(Boolean, nullable=False, default=True)
    # subscription
    subscription_plan = Column(String(20), nullable=False, default=SubscriptionPlan.FREE.value)
    subscription_status = Column(String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value)
    subscription_start = Column(DateTime, nullable=False, default=datetime.utcnow)
    subscription_end = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    members = relationship(
        "OrganizationMember",
        back_populates="organization",
        cascade="all, delete-orphan",
        order_by="OrganizationMember.joined_at",
    )

    def member_for(self, user_id: str):
        return next((m for m in self.members if m.user_id == user_id), None)

    def is_member(self, user_id: str) -> bool:
        return self.member_for(user_id) is not None


class OrganizationMember(Base):
    __tablename__ = "organization_members"
    __table_args__ = (UniqueConstraint("organization_id", "user_id", name="uq_organization_member"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=MemberRole.MEMBER.value)
    joined_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    organization = relationship("Organization", back_populates="members")
    user = relationship("User", lazy="joined")
