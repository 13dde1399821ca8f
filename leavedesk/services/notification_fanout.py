"""
Works out who must hear about a lifecycle event and what they are told.
Produces data only; delivery belongs to the notifier.
"""
from typing import Dict, Iterable, List, Optional, Set, Tuple

from leavedesk.models.leave_request import LeaveStatus
from leavedesk.schemas.leave import DecisionOutcome, LeaveRequestRecord
from leavedesk.schemas.member import MemberInfo
from leavedesk.schemas.notification import (
    EmailPayload,
    LifecycleEvent,
    MessageTemplate,
    PlannedNotification,
)
from leavedesk.services.actors import Actor, is_hr_or_admin
from leavedesk.services.state_machine import request_duration


def _period(request: LeaveRequestRecord) -> str:
    days = request_duration(request)
    if request.start_date == request.end_date:
        return f"on {request.start_date.isoformat()} ({days:g} day{'s' if days != 1 else ''})"
    return f"from {request.start_date.isoformat()} to {request.end_date.isoformat()} ({days:g} days)"


def _urgent(request: LeaveRequestRecord) -> str:
    return "[URGENT] " if request.is_urgent else ""


def render(template: MessageTemplate, request: LeaveRequestRecord, actor: Optional[Actor] = None) -> Tuple[str, str, str]:
    """Returns (title, message, type) for a template."""
    who = request.requester_name
    kind = request.leave_type_name
    if template == MessageTemplate.APPROVAL_REQUESTED:
        return (
            "Leave Approval Requested",
            f"{_urgent(request)}{who} requested {kind} {_period(request)}. Reason: {request.reason}",
            "warning" if request.is_urgent else "info",
        )
    if template == MessageTemplate.APPROVAL_REQUEST_UPDATED:
        return (
            "Leave Request Updated",
            f"{_urgent(request)}{who} updated their {kind} request, now {_period(request)}. Reason: {request.reason}",
            "warning" if request.is_urgent else "info",
        )
    if template == MessageTemplate.CC_FYI:
        return (
            "Leave Notice (FYI)",
            f"FYI: {who} has requested {kind} {_period(request)}. No action is needed from you.",
            "info",
        )
    if template == MessageTemplate.REQUEST_WITHDRAWN:
        return (
            "Leave Request Withdrawn",
            f"{who} withdrew their {kind} request {_period(request)}.",
            "info",
        )
    if template == MessageTemplate.STATUS_CHANGED:
        if request.status == LeaveStatus.APPROVED:
            comment = request.hr_comment or request.manager_comment
            suffix = f" Comment: {comment}" if comment else ""
            return ("Leave Approved", f"Your {kind} request {_period(request)} has been APPROVED.{suffix}", "success")
        if request.status == LeaveStatus.REJECTED:
            comment = request.hr_comment or request.manager_comment
            return ("Leave Rejected", f"Your {kind} request has been REJECTED. Reason: {comment}", "error")
        return ("Leave Update", f"Your {kind} request is now '{request.status.value}'.", "info")
    if template == MessageTemplate.HR_REVIEW_EXPECTED:
        by = f" by {actor.name or actor.id}" if actor is not None else ""
        return (
            "HR Review Expected",
            f"{who}'s {kind} request {_period(request)} was approved{by}. HR review is expected.",
            "info",
        )
    raise ValueError(f"Unknown message template: {template}")


class NotificationFanout:
    def plan(
        self,
        event: LifecycleEvent,
        request: LeaveRequestRecord,
        hr_ids: Iterable[str] = (),
        actor: Optional[Actor] = None,
        outcome: Optional[DecisionOutcome] = None,
    ) -> List[PlannedNotification]:
        """
        Ordered notification list for one event. `request` is the record after
        the transition (before deletion, for withdrawals).
        """
        planned: List[PlannedNotification] = []
        seen: Set[Tuple[str, MessageTemplate]] = set()

        def add(recipient_id: Optional[str], template: MessageTemplate):
            if not recipient_id or (recipient_id, template) in seen:
                return
            seen.add((recipient_id, template))
            title, message, type_ = render(template, request, actor)
            planned.append(PlannedNotification(
                recipient_id=recipient_id, template=template, title=title, message=message, type=type_
            ))

        if event in (LifecycleEvent.SUBMITTED, LifecycleEvent.EDITED):
            add(
                request.approver_id,
                MessageTemplate.APPROVAL_REQUESTED if event == LifecycleEvent.SUBMITTED
                else MessageTemplate.APPROVAL_REQUEST_UPDATED,
            )
            for cc_id in request.notify_ids:
                # CC recipients never get the decision template
                if cc_id in (request.approver_id, request.requester_id):
                    continue
                add(cc_id, MessageTemplate.CC_FYI)
        elif event == LifecycleEvent.WITHDRAWN:
            add(request.approver_id, MessageTemplate.REQUEST_WITHDRAWN)
        elif event == LifecycleEvent.DECIDED:
            add(request.requester_id, MessageTemplate.STATUS_CHANGED)
            approved_by_non_hr = (
                outcome == DecisionOutcome.APPROVE and actor is not None and not is_hr_or_admin(actor)
            )
            # Pending HR is never produced today; the rule is kept so the two stay in step.
            if approved_by_non_hr or request.status == LeaveStatus.PENDING_HR_APPROVAL:
                for hr_id in hr_ids:
                    add(hr_id, MessageTemplate.HR_REVIEW_EXPECTED)
        else:
            raise ValueError(f"Unknown lifecycle event: {event}")
        return planned

    @staticmethod
    def email_for(
        event: LifecycleEvent,
        request: LeaveRequestRecord,
        members: Dict[str, MemberInfo],
    ) -> Optional[EmailPayload]:
        """Structured email for the primary recipient of an event, with CC recipients copied."""

        def email_of(member_id: Optional[str]) -> Optional[str]:
            member = members.get(member_id) if member_id else None
            return member.email if member and member.email else None

        cc: List[str] = []
        if event in (LifecycleEvent.SUBMITTED, LifecycleEvent.EDITED):
            to = email_of(request.approver_id)
            for cc_id in request.notify_ids:
                address = email_of(cc_id)
                if address and address != to and address not in cc:
                    cc.append(address)
            subject = (
                f"{_urgent(request)}Leave request from {request.requester_name}"
                if event == LifecycleEvent.SUBMITTED
                else f"{_urgent(request)}Updated leave request from {request.requester_name}"
            )
        elif event == LifecycleEvent.WITHDRAWN:
            to = email_of(request.approver_id)
            subject = f"Leave request withdrawn by {request.requester_name}"
        elif event == LifecycleEvent.DECIDED:
            to = email_of(request.requester_id)
            subject = f"Your leave request was {request.status.value.lower()}"
        else:
            raise ValueError(f"Unknown lifecycle event: {event}")

        if not to:
            return None
        approver = members.get(request.approver_id) if request.approver_id else None
        return EmailPayload(
            to=[to],
            cc=cc,
            subject=subject,
            template_fields={
                "event": event.value,
                "request_id": request.id,
                "requester_name": request.requester_name,
                "approver_name": approver.name if approver else None,
                "leave_type": request.leave_type_name,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
                "duration_days": request_duration(request),
                "reason": request.reason,
                "status": request.status.value,
                "is_urgent": request.is_urgent,
                "comment": request.hr_comment or request.manager_comment,
            },
        )
