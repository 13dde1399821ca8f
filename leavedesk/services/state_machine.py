"""
Leave request lifecycle rules.

Pure logic: every method takes the current record (freshly read by the caller)
and returns the new record or raises. Nothing here touches the store or the
notifier.

    Pending Manager --approve--> Approved
    Pending Manager --reject---> Rejected
    Pending HR      --approve--> Approved
    Pending HR      --reject---> Rejected

Pending HR is part of the status vocabulary but no operation here produces it:
a line manager's approval is final.
"""
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple, Type
import logging

from leavedesk.core.config import settings
from leavedesk.core.exceptions import (
    InvalidTransitionError,
    NotAuthorizedError,
    NotEditableError,
    NotWithdrawableError,
    ValidationError,
)
from leavedesk.models.leave_request import DurationKind, LeaveStatus
from leavedesk.schemas.leave import (
    DecisionOutcome,
    LeaveRequestCreate,
    LeaveRequestRecord,
    LeaveTypeConfig,
)
from leavedesk.services.actors import Actor, Admin, HRReviewer, LineManager, Requester

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({LeaveStatus.PENDING_MANAGER_APPROVAL, LeaveStatus.PENDING_HR_APPROVAL})
TERMINAL_STATUSES = frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED})

ALLOWED_TRANSITIONS = {
    LeaveStatus.PENDING_MANAGER_APPROVAL: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED}),
    LeaveStatus.PENDING_HR_APPROVAL: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED}),
    LeaveStatus.APPROVED: frozenset(),
    LeaveStatus.REJECTED: frozenset(),
}

# Fields a requester may replace while the request is still with the manager
EDITABLE_FIELDS = (
    "leave_type_name",
    "start_date",
    "end_date",
    "duration_kind",
    "reason",
    "approver_id",
    "notify_ids",
    "is_urgent",
    "attachment_url",
    "manager_consent",
)
CLEARABLE_FIELDS = frozenset({"attachment_url"})


def duration_days(duration_kind: DurationKind, start_date: date, end_date: date) -> float:
    """Half day is always 0.5. Full day counts both ends; inverted ranges count 0."""
    if duration_kind == DurationKind.HALF_DAY:
        return 0.5
    days = (end_date - start_date).days + 1
    return float(max(0, days))


def request_duration(request: LeaveRequestRecord) -> float:
    return duration_days(request.duration_kind, request.start_date, request.end_date)


def check_transition(current: LeaveStatus, target: LeaveStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot move a leave request from '{current.value}' to '{target.value}'",
            details={"from": current.value, "to": target.value},
        )


def ensure_expected_status(
    request: LeaveRequestRecord,
    expected: Optional[LeaveStatus],
    error: Type[InvalidTransitionError] = InvalidTransitionError,
) -> None:
    """The caller acted on a status it read earlier; refuse if the record moved since."""
    if expected is None or request.status == expected:
        return
    logger.info(
        f"Stale leave state for {request.id}: expected {expected.value}, found {request.status.value}"
    )
    raise error(f"Leave request {request.id} is now '{request.status.value}', not '{expected.value}'")


class ApprovalStateMachine:
    def __init__(
        self,
        certificate_keyword: str = None,
        certificate_threshold_days: float = None,
    ):
        self.certificate_keyword = (certificate_keyword or settings.medical_certificate_keyword).lower()
        self.certificate_threshold_days = (
            settings.medical_certificate_threshold_days
            if certificate_threshold_days is None
            else certificate_threshold_days
        )

    # --- validation helpers ---

    @staticmethod
    def _validate_leave_type(name: str, leave_type: Optional[LeaveTypeConfig]) -> None:
        if leave_type is None:
            raise ValidationError(f"Unknown leave type '{name}'", details={"field": "leave_type_name"})
        if not leave_type.is_active:
            raise ValidationError(
                f"Leave type '{name}' is no longer available for new requests",
                details={"field": "leave_type_name"},
            )

    @staticmethod
    def _normalize_dates(
        duration_kind: DurationKind, start_date: date, end_date: Optional[date]
    ) -> Tuple[date, date]:
        if duration_kind == DurationKind.HALF_DAY:
            return start_date, start_date
        if end_date is None:
            raise ValidationError("End date is required for full-day leave", details={"field": "end_date"})
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date", details={"field": "end_date"})
        return start_date, end_date

    @staticmethod
    def _normalize_reason(reason: Optional[str]) -> str:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required", details={"field": "reason"})
        return reason

    def _check_certificate(self, record: LeaveRequestRecord) -> None:
        if self.certificate_keyword not in record.leave_type_name.lower():
            return
        if request_duration(record) > self.certificate_threshold_days and not record.attachment_url:
            raise ValidationError(
                f"A medical certificate is required for {record.leave_type_name} "
                f"exceeding {self.certificate_threshold_days:g} days",
                details={"field": "attachment_url"},
            )

    # --- transitions ---

    def create(
        self,
        request_id: str,
        requester_id: str,
        requester_name: str,
        payload: LeaveRequestCreate,
        leave_type: Optional[LeaveTypeConfig],
        created_at: datetime,
    ) -> LeaveRequestRecord:
        """Builds a new request in Pending Manager. Approver eligibility is checked by the resolver."""
        self._validate_leave_type(payload.leave_type_name, leave_type)
        start_date, end_date = self._normalize_dates(payload.duration_kind, payload.start_date, payload.end_date)
        record = LeaveRequestRecord(
            id=request_id,
            requester_id=requester_id,
            requester_name=requester_name,
            leave_type_name=payload.leave_type_name,
            start_date=start_date,
            end_date=end_date,
            duration_kind=payload.duration_kind,
            reason=self._normalize_reason(payload.reason),
            status=LeaveStatus.PENDING_MANAGER_APPROVAL,
            approver_id=payload.approver_id,
            is_urgent=payload.is_urgent,
            notify_ids=[i for i in payload.notify_ids if i != requester_id],
            attachment_url=payload.attachment_url,
            manager_consent=payload.manager_consent,
            created_at=created_at,
        )
        self._check_certificate(record)
        return record

    @staticmethod
    def ensure_editable(request: LeaveRequestRecord, requester_id: str) -> None:
        if request.requester_id != requester_id:
            raise NotEditableError("Only the requester can edit this leave request")
        if request.status != LeaveStatus.PENDING_MANAGER_APPROVAL:
            raise NotEditableError(
                f"Leave request is '{request.status.value}' and can no longer be edited"
            )

    @staticmethod
    def ensure_withdrawable(request: LeaveRequestRecord, requester_id: str) -> None:
        if request.requester_id != requester_id:
            raise NotWithdrawableError("Only the requester can withdraw this leave request")
        if request.status != LeaveStatus.PENDING_MANAGER_APPROVAL:
            raise NotWithdrawableError(
                f"Leave request is '{request.status.value}' and can no longer be withdrawn"
            )

    def apply_edit(
        self,
        request: LeaveRequestRecord,
        requester_id: str,
        changes: Dict[str, Any],
        leave_type: Optional[LeaveTypeConfig] = None,
    ) -> LeaveRequestRecord:
        """
        Replaces mutable fields. `leave_type` must be the live config when the type
        name changes; an unchanged type name is a frozen snapshot and is not re-checked.
        """
        self.ensure_editable(request, requester_id)
        update = {
            k: v for k, v in changes.items()
            if k in EDITABLE_FIELDS and (v is not None or k in CLEARABLE_FIELDS)
        }

        new_type = update.get("leave_type_name", request.leave_type_name)
        if new_type != request.leave_type_name:
            self._validate_leave_type(new_type, leave_type)

        kind = update.get("duration_kind") or request.duration_kind
        start_date = update.get("start_date") or request.start_date
        end_date = update.get("end_date") or request.end_date
        update["duration_kind"] = kind
        update["start_date"], update["end_date"] = self._normalize_dates(kind, start_date, end_date)
        if "reason" in update:
            update["reason"] = self._normalize_reason(update["reason"])
        if "notify_ids" in update:
            update["notify_ids"] = [i for i in update["notify_ids"] if i != request.requester_id]

        return request.model_copy(update=update)

    @staticmethod
    def can_decide(actor: Actor, request: LeaveRequestRecord) -> bool:
        if isinstance(actor, (HRReviewer, Admin)):
            return True
        if isinstance(actor, LineManager):
            return request.approver_id == actor.id
        if isinstance(actor, Requester):
            return False
        raise TypeError(f"Unknown actor variant: {actor!r}")

    def apply_decision(
        self,
        request: LeaveRequestRecord,
        actor: Actor,
        outcome: DecisionOutcome,
        comment: Optional[str] = None,
    ) -> LeaveRequestRecord:
        if request.status not in PENDING_STATUSES:
            raise InvalidTransitionError(
                f"Leave request is already '{request.status.value}'",
                details={"status": request.status.value},
            )
        if not self.can_decide(actor, request):
            raise NotAuthorizedError(
                "Only the assigned approver or HR can decide on this leave request"
            )

        comment = (comment or "").strip() or None
        if outcome == DecisionOutcome.REJECT:
            if not comment:
                raise ValidationError("A comment is required when rejecting a leave request", details={"field": "comment"})
            target = LeaveStatus.REJECTED
        elif outcome == DecisionOutcome.APPROVE:
            target = LeaveStatus.APPROVED
        else:
            raise ValidationError(f"Unknown decision outcome '{outcome}'")
        check_transition(request.status, target)

        update: Dict[str, Any] = {"status": target}
        if comment:
            if isinstance(actor, LineManager):
                update["manager_comment"] = comment
            elif isinstance(actor, (HRReviewer, Admin)):
                update["hr_comment"] = comment
        return request.model_copy(update=update)
