"""
Organizations: any authenticated user can create one and becomes its owner
(and first member). Only members can view it; only the owner edits members.
"""
import re
from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.auth import get_current_user
from app.database import get_db
from app.errors import Conflict, Forbidden, NotFound, ValidationFailed
from app.models.organization import MemberRole, Organization, OrganizationMember
from app.models.user import User
from app.schemas.common import success_response
from app.schemas.organization import (
    AddMemberRequest,
    MemberResponse,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationSettings,
    OrganizationSubscription,
)

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


def slugify(name: str) -> str:
    """Lowercase, whitespace runs to '-', drop anything outside [a-z0-9-]."""
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def organization_response(org: Organization) -> OrganizationResponse:
    return OrganizationResponse(
        id=org.id,
        name=org.name,
        slug=org.slug,
        description=org.description,
        owner_id=org.owner_id,
        is_active=org.is_active,
        members=[
            MemberResponse(
                user_id=m.user_id,
                email=m.user.email if m.user else None,
                role=m.role,
                joined_at=m.joined_at,
            )
            for m in org.members
        ],
        settings=OrganizationSettings(
            max_storage_gb=org.max_storage_gb,
            max_video_length=org.max_video_length,
            allowed_formats=org.allowed_formats or [],
            moderation_enabled=org.moderation_enabled,
            streaming_enabled=org.streaming_enabled,
        ),
        subscription=OrganizationSubscription(
            plan=org.subscription_plan,
            status=org.subscription_status,
            start_date=org.subscription_start,
            end_date=org.subscription_end,
        ),
        created_at=org.created_at,
        updated_at=org.updated_at,
    )


def _get_org_or_404(db: Session, org_id: str) -> Organization:
    org = db.query(Organization).filter(Organization.id == org_id).first()
    if not org:
        raise NotFound("Organization not found")
    return org


def _require_owner(org: Organization, user: User, action: str) -> None:
    if org.owner_id != user.id:
        raise Forbidden(f"Only organization owner can {action} members")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_organization(
    body: OrganizationCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    slug = slugify(body.name)
    if not slug:
        raise ValidationFailed("Organization name must contain letters or digits")
    if db.query(Organization).filter(Organization.slug == slug).first():
        raise Conflict("Organization with this name already exists")
    org = Organization(
        name=body.name.strip(),
        slug=slug,
        description=body.description,
        owner_id=user.id,
    )
    org.members.append(OrganizationMember(user_id=user.id, role=MemberRole.OWNER.value, joined_at=datetime.utcnow()))
    db.add(org)
    db.commit()
    db.refresh(org)
    return success_response({"organization": organization_response(org)}, message="Organization created successfully")


@router.get("")
def list_organizations(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Organizations the caller owns or belongs to."""
    orgs = (
        db.query(Organization)
        .outerjoin(OrganizationMember, OrganizationMember.organization_id == Organization.id)
        .filter((Organization.owner_id == user.id) | (OrganizationMember.user_id == user.id))
        .distinct()
        .order_by(Organization.created_at.desc())
        .all()
    )
    return success_response({"organizations": [organization_response(o) for o in orgs]})


@router.get("/{org_id}")
def get_organization(
    org_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    org = _get_org_or_404(db, org_id)
    if not org.is_member(user.id):
        raise Forbidden("Not authorized to view this organization")
    return success_response({"organization": organization_response(org)})


@router.post("/{org_id}/members")
def add_member(
    org_id: str,
    body: AddMemberRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    org = _get_org_or_404(db, org_id)
    _require_owner(org, user, "add")
    if body.role == MemberRole.OWNER:
        raise ValidationFailed("An organization has exactly one owner")
    if not db.query(User).filter(User.id == body.user_id).first():
        raise NotFound("User not found")
    if org.is_member(body.user_id):
        raise Conflict("User is already a member")
    org.members.append(OrganizationMember(user_id=body.user_id, role=body.role.value, joined_at=datetime.utcnow()))
    db.commit()
    db.refresh(org)
    return success_response({"organization": organization_response(org)}, message="Member added successfully")


@router.delete("/{org_id}/members/{user_id}")
def remove_member(
    org_id: str,
    user_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    org = _get_org_or_404(db, org_id)
    _require_owner(org, user, "remove")
    if user_id == org.owner_id:
        raise ValidationFailed("The owner cannot be removed from the organization")
    member = org.member_for(user_id)
    if member is not None:
        org.members.remove(member)
        db.commit()
        db.refresh(org)
    return success_response({"organization": organization_response(org)}, message="Member removed successfully")
