# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import member, leave_type, leave_request, notification

from .member import Member, MemberRole
from .leave_type import LeaveType
from .leave_request import LeaveRequest, LeaveStatus, DurationKind
from .notification import Notification

__all__ = [
    "Member",
    "MemberRole",
    "LeaveType",
    "LeaveRequest",
    "LeaveStatus",
    "DurationKind",
    "Notification",
]
