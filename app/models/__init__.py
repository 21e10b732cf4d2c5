from app.models.role import Role
from app.models.user import User
from app.models.organization import Organization, OrganizationMember, MemberRole, SubscriptionPlan, SubscriptionStatus
from app.models.video import Video, VideoStatus, ModerationStatus, InvalidStatusTransition
from app.models.processing_job import ProcessingJob, JobState

__all__ = [
    "Role", "User", "Organization", "OrganizationMember", "MemberRole", "SubscriptionPlan",
    "SubscriptionStatus", "Video", "VideoStatus", "ModerationStatus", "InvalidStatusTransition",
    "ProcessingJob", "JobState",
]
