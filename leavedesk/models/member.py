"""
Directory member model.
The portal's people directory, read by the approver resolver and the notifier.
"""
from sqlalchemy import Column, String, Enum, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from leavedesk.database import Base


class MemberRole(str, enum.Enum):
    """
    System roles of the portal.

    - ADMIN: full administration, overrides any leave decision
    - HR: HR reviewer, overrides any leave decision
    - MANAGER: line manager, decides requests assigned to them
    - EMPLOYEE: self-service only
    """
    ADMIN = "ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class Member(Base):
    __tablename__ = "members"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role_title = Column(String, nullable=False, default="")  # free-text position, e.g. "Team Manager"
    role = Column(Enum(MemberRole), default=MemberRole.EMPLOYEE, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    notifications = relationship("Notification", back_populates="member", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Member {self.email} ({self.role.value})>"
