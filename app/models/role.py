"""Role with its permission list. Seeded from app.permissions.ROLE_PERMISSIONS."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON
from app.database import Base
from app.permissions import Permission, parse_permissions


class Role(Base):
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(20), unique=True, nullable=False, index=True)  # RoleName value
    description = Column(String(255), nullable=False, default="")
    permissions = Column(JSON, nullable=False, default=list)  # list of Permission values
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def permission_set(self) -> frozenset[Permission]:
        return parse_permissions(self.permissions)
