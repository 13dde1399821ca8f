from typing import Dict, List, Optional

from leavedesk.schemas.leave import LeaveTypeConfig


class PolicyRegistry:
    """
    Read-only view over the configured leave types.
    Built from a store snapshot; administrators change types elsewhere.
    """

    def __init__(self, leave_types: List[LeaveTypeConfig]):
        self._types = list(leave_types)
        # Active names win over inactive ones sharing the same display name
        self._by_name: Dict[str, LeaveTypeConfig] = {}
        for t in sorted(self._types, key=lambda t: t.is_active):
            self._by_name[t.name] = t

    def all(self) -> List[LeaveTypeConfig]:
        return list(self._types)

    def active(self) -> List[LeaveTypeConfig]:
        return [t for t in self._types if t.is_active]

    def find(self, name: str) -> Optional[LeaveTypeConfig]:
        """Any type by name, including deactivated ones still referenced by history."""
        return self._by_name.get(name)
