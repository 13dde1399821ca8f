from typing import Iterable, List, Optional

from leavedesk.core.config import settings
from leavedesk.core.exceptions import NoEligibleApproverError
from leavedesk.schemas.member import MemberInfo
from leavedesk.services.actors import has_manager_title


class ApproverResolver:
    """
    Decides who may be picked as the approver of a request.

    Any active member whose position title contains the approver token
    (default "manager", case-insensitive) qualifies, except the requester.
    There is no reporting-line constraint: the requester picks one explicitly.
    """

    def __init__(self, title_token: str = None):
        self.title_token = (title_token or settings.approver_title_token).lower()

    def eligible_approvers(self, members: Iterable[MemberInfo], requester_id: str) -> List[MemberInfo]:
        return [
            m for m in members
            if m.is_active
            and m.id != requester_id
            and has_manager_title(m.role_title, self.title_token)
        ]

    def confirm(self, members: Iterable[MemberInfo], requester_id: str, approver_id: Optional[str]) -> MemberInfo:
        if not approver_id:
            raise NoEligibleApproverError()
        for candidate in self.eligible_approvers(members, requester_id):
            if candidate.id == approver_id:
                return candidate
        raise NoEligibleApproverError(f"'{approver_id}' cannot approve leave requests for this requester")
