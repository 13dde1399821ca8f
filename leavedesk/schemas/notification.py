from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class LifecycleEvent(str, Enum):
    SUBMITTED = "Submitted"
    EDITED = "Edited"
    WITHDRAWN = "Withdrawn"
    DECIDED = "Decided"


class MessageTemplate(str, Enum):
    APPROVAL_REQUESTED = "approval_requested"
    APPROVAL_REQUEST_UPDATED = "approval_request_updated"
    CC_FYI = "cc_fyi"
    REQUEST_WITHDRAWN = "request_withdrawn"
    STATUS_CHANGED = "status_changed"
    HR_REVIEW_EXPECTED = "hr_review_expected"


class PlannedNotification(BaseModel):
    recipient_id: str
    template: MessageTemplate
    title: str
    message: str
    type: str = "info"


class EmailPayload(BaseModel):
    to: List[str]
    cc: List[str] = Field(default_factory=list)
    subject: str
    template_fields: Dict[str, Any] = Field(default_factory=dict)
