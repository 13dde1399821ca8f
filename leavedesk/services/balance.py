from typing import Iterable, List

from leavedesk.core.exceptions import ValidationError
from leavedesk.models.leave_request import LeaveStatus
from leavedesk.schemas.leave import BalanceView, LeaveRequestRecord
from leavedesk.services.policy_registry import PolicyRegistry
from leavedesk.services.state_machine import request_duration


class BalanceCalculator:
    """
    Derives leave balances from approved history.
    Holds no state: callers pass a fresh read of the request set every time.
    """

    @staticmethod
    def used_days(requests: Iterable[LeaveRequestRecord], requester_id: str, leave_type_name: str) -> float:
        return sum(
            request_duration(r)
            for r in requests
            if r.requester_id == requester_id
            and r.leave_type_name == leave_type_name
            and r.status == LeaveStatus.APPROVED
        )

    def view(
        self,
        requests: Iterable[LeaveRequestRecord],
        registry: PolicyRegistry,
        requester_id: str,
        leave_type_name: str,
    ) -> BalanceView:
        leave_type = registry.find(leave_type_name)
        if leave_type is None:
            raise ValidationError(f"Unknown leave type '{leave_type_name}'", details={"field": "leave_type_name"})
        used = self.used_days(requests, requester_id, leave_type_name)
        allowance = float(leave_type.annual_allowance_days)
        return BalanceView(
            requester_id=requester_id,
            leave_type_name=leave_type_name,
            allowance_days=allowance,
            used_days=used,
            remaining_days=max(0.0, allowance - used),
        )

    def remaining(
        self,
        requests: Iterable[LeaveRequestRecord],
        registry: PolicyRegistry,
        requester_id: str,
        leave_type_name: str,
    ) -> float:
        return self.view(requests, registry, requester_id, leave_type_name).remaining_days

    def balances(
        self,
        requests: Iterable[LeaveRequestRecord],
        registry: PolicyRegistry,
        requester_id: str,
    ) -> List[BalanceView]:
        """One view per active leave type."""
        requests = list(requests)
        return [self.view(requests, registry, requester_id, t.name) for t in registry.active()]
