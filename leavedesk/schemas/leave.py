from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Optional

from leavedesk.models.leave_request import LeaveStatus, DurationKind
from leavedesk.schemas.notification import PlannedNotification


def _unique_ids(ids: Optional[List[str]]) -> List[str]:
    """Keeps first occurrence order; the notify set is an ordered set."""
    seen = []
    for i in ids or []:
        i = str(i)
        if i not in seen:
            seen.append(i)
    return seen


NotifyIds = Annotated[List[str], BeforeValidator(_unique_ids)]


class DecisionOutcome(str, Enum):
    APPROVE = "Approve"
    REJECT = "Reject"


class LeaveTypeConfig(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    annual_allowance_days: int = Field(ge=0)
    description: Optional[str] = ""
    is_active: bool = True
    color: Optional[str] = None


class LeaveRequestRecord(BaseModel):
    """A leave request as the engine sees it. Mirrors the leave_requests row."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    requester_id: str
    requester_name: str
    leave_type_name: str
    start_date: date
    end_date: date
    duration_kind: DurationKind = DurationKind.FULL_DAY
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING_MANAGER_APPROVAL
    approver_id: Optional[str] = None
    is_urgent: bool = False
    notify_ids: NotifyIds = Field(default_factory=list)
    manager_comment: Optional[str] = None
    hr_comment: Optional[str] = None
    attachment_url: Optional[str] = None
    manager_consent: bool = False
    created_at: datetime


class LeaveRequestCreate(BaseModel):
    leave_type_name: str
    start_date: date
    end_date: Optional[date] = None  # may be omitted for half days
    duration_kind: DurationKind = DurationKind.FULL_DAY
    reason: str
    approver_id: Optional[str] = None
    is_urgent: bool = False
    notify_ids: NotifyIds = Field(default_factory=list)
    attachment_url: Optional[str] = None
    manager_consent: bool = False


class LeaveRequestUpdate(BaseModel):
    """Partial edit. Only fields explicitly sent are replaced."""
    leave_type_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_kind: Optional[DurationKind] = None
    reason: Optional[str] = None
    approver_id: Optional[str] = None
    is_urgent: Optional[bool] = None
    notify_ids: Optional[NotifyIds] = None
    attachment_url: Optional[str] = None
    manager_consent: Optional[bool] = None
    expected_status: Optional[LeaveStatus] = None


class LeaveDecisionRequest(BaseModel):
    outcome: DecisionOutcome
    comment: Optional[str] = None
    expected_status: Optional[LeaveStatus] = None


class RequestFilter(BaseModel):
    request_id: Optional[str] = None
    requester_id: Optional[str] = None
    approver_id: Optional[str] = None
    leave_type_name: Optional[str] = None
    statuses: Optional[List[LeaveStatus]] = None


class BalanceView(BaseModel):
    requester_id: str
    leave_type_name: str
    allowance_days: float
    used_days: float
    remaining_days: float


class LifecycleOutcome(BaseModel):
    """Result of a committed lifecycle operation."""
    request: Optional[LeaveRequestRecord] = None
    notifications: List[PlannedNotification] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
