from sqlalchemy import Column, String, Date, Boolean, DateTime, Text, JSON
from leavedesk.database import Base
import enum

class LeaveStatus(str, enum.Enum):
    PENDING_MANAGER_APPROVAL = "Pending Manager"
    PENDING_HR_APPROVAL = "Pending HR"
    APPROVED = "Approved"
    REJECTED = "Rejected"

class DurationKind(str, enum.Enum):
    FULL_DAY = "Full Day"
    HALF_DAY = "Half Day"

class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(String, primary_key=True, index=True)
    requester_id = Column(String, index=True, nullable=False)
    requester_name = Column(String, nullable=False)  # snapshot taken at submission
    leave_type_name = Column(String, index=True, nullable=False)  # snapshot, not a foreign key
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    duration_kind = Column(String, default=DurationKind.FULL_DAY.value, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String, default=LeaveStatus.PENDING_MANAGER_APPROVAL.value, index=True, nullable=False)
    approver_id = Column(String, index=True, nullable=True)
    is_urgent = Column(Boolean, default=False, nullable=False)
    notify_ids = Column(JSON, default=list)
    manager_comment = Column(Text, nullable=True)
    hr_comment = Column(Text, nullable=True)
    attachment_url = Column(String, nullable=True)
    manager_consent = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
