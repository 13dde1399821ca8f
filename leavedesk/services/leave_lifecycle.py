"""
Leave lifecycle facade.

Every caller-visible leave operation goes through `LeaveLifecycleService`.
Each mutating call is one unit of work: read the current record, apply the
state machine, write once, then plan and deliver notifications. Once the write
has returned the transition is committed; notifier failures after that point
become warnings on the outcome and never undo it.
"""
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Tuple
import logging
import uuid

from leavedesk.core.exceptions import (
    AppException,
    AuthenticationError,
    CollaboratorFailure,
    InvalidTransitionError,
    LeaveRequestNotFoundError,
    NotEditableError,
    NotWithdrawableError,
    ValidationError,
)
from leavedesk.models.leave_request import LeaveStatus
from leavedesk.models.member import MemberRole
from leavedesk.schemas.leave import (
    BalanceView,
    DecisionOutcome,
    LeaveRequestCreate,
    LeaveRequestRecord,
    LeaveRequestUpdate,
    LeaveTypeConfig,
    LifecycleOutcome,
    RequestFilter,
)
from leavedesk.schemas.member import MemberInfo
from leavedesk.schemas.notification import LifecycleEvent, PlannedNotification
from leavedesk.services.actors import Actor, Admin, HRReviewer, LineManager, Requester, actor_for
from leavedesk.services.approver_resolver import ApproverResolver
from leavedesk.services.balance import BalanceCalculator
from leavedesk.services.directory import Directory
from leavedesk.services.notification_fanout import NotificationFanout
from leavedesk.services.notifier import Notifier
from leavedesk.services.policy_registry import PolicyRegistry
from leavedesk.services.state_machine import ApprovalStateMachine, ensure_expected_status
from leavedesk.services.store import LeaveStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_request_id() -> str:
    return uuid.uuid4().hex


class LeaveLifecycleService:
    def __init__(
        self,
        store: LeaveStore,
        directory: Directory,
        notifier: Notifier,
        state_machine: Optional[ApprovalStateMachine] = None,
        resolver: Optional[ApproverResolver] = None,
        fanout: Optional[NotificationFanout] = None,
        calculator: Optional[BalanceCalculator] = None,
        id_factory: Callable[[], str] = _new_request_id,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.directory = directory
        self.notifier = notifier
        self.state_machine = state_machine or ApprovalStateMachine()
        self.resolver = resolver or ApproverResolver()
        self.fanout = fanout or NotificationFanout()
        self.calculator = calculator or BalanceCalculator()
        self.id_factory = id_factory
        self.clock = clock

    # ------------------------------------------------------------------
    # Collaborator access
    # ------------------------------------------------------------------

    async def _call(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        """Awaits a store/directory call; foreign errors come back as CollaboratorFailure."""
        try:
            return await awaitable
        except AppException:
            raise
        except Exception as e:
            logger.error(f"Collaborator call '{operation}' failed: {e}", exc_info=True)
            raise CollaboratorFailure(operation, e) from e

    async def _registry(self) -> PolicyRegistry:
        return PolicyRegistry(await self._call("list_leave_types", self.store.list_leave_types()))

    async def _members(self) -> List[MemberInfo]:
        return await self._call("list_members", self.directory.list_members())

    async def _fetch(self, request_id: str) -> LeaveRequestRecord:
        found = await self._call("list_requests", self.store.list_requests(RequestFilter(request_id=request_id)))
        if not found:
            raise LeaveRequestNotFoundError(request_id)
        return found[0]

    async def _dispatch(
        self,
        event: LifecycleEvent,
        request: LeaveRequestRecord,
        members: List[MemberInfo],
        actor: Optional[Actor] = None,
        outcome: Optional[DecisionOutcome] = None,
    ) -> Tuple[List[PlannedNotification], List[str]]:
        hr_ids = [m.id for m in members if m.is_active and m.role in (MemberRole.HR, MemberRole.ADMIN)]
        plan = self.fanout.plan(event, request, hr_ids=hr_ids, actor=actor, outcome=outcome)
        warnings: List[str] = []

        for item in plan:
            try:
                await self.notifier.notify(item.recipient_id, item.message, title=item.title, type=item.type)
            except Exception as e:
                # The transition is already committed; report and move on
                logger.warning(
                    f"Notification to {item.recipient_id} failed after {event.value} of {request.id}: {e}",
                    exc_info=True,
                )
                warnings.append(f"Could not notify {item.recipient_id}: {e}")

        email = self.fanout.email_for(event, request, {m.id: m for m in members})
        if email is not None:
            try:
                await self.notifier.send_structured_email(email)
            except Exception as e:
                logger.warning(f"Email for {event.value} of {request.id} failed: {e}", exc_info=True)
                warnings.append(f"Could not email {', '.join(email.to)}: {e}")

        return plan, warnings

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def resolve_actor(self, member_id: str) -> Actor:
        for member in await self._members():
            if member.id == member_id and member.is_active:
                return actor_for(member, title_token=self.resolver.title_token)
        raise AuthenticationError(f"Unknown or inactive member '{member_id}'")

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    async def submit(self, requester_id: str, payload: LeaveRequestCreate) -> LifecycleOutcome:
        members = await self._members()
        requester = next((m for m in members if m.id == requester_id and m.is_active), None)
        if requester is None:
            raise ValidationError(f"Unknown or inactive requester '{requester_id}'", details={"field": "requester_id"})

        registry = await self._registry()
        record = self.state_machine.create(
            request_id=self.id_factory(),
            requester_id=requester.id,
            requester_name=requester.name,
            payload=payload,
            leave_type=registry.find(payload.leave_type_name),
            created_at=self.clock(),
        )
        self.resolver.confirm(members, requester.id, record.approver_id)

        await self._call("create_request", self.store.create_request(record))
        logger.info(
            f"Leave request {record.id} submitted by {requester.id}",
            extra={"leave_type": record.leave_type_name, "approver_id": record.approver_id},
        )

        plan, warnings = await self._dispatch(LifecycleEvent.SUBMITTED, record, members)
        return LifecycleOutcome(request=record, notifications=plan, warnings=warnings)

    async def edit(self, request_id: str, requester_id: str, changes: LeaveRequestUpdate) -> LifecycleOutcome:
        current = await self._fetch(request_id)
        ensure_expected_status(current, changes.expected_status, NotEditableError)
        self.state_machine.ensure_editable(current, requester_id)

        fields = changes.model_dump(exclude_unset=True, exclude={"expected_status"})
        registry = await self._registry()
        new_type = fields.get("leave_type_name") or current.leave_type_name
        updated = self.state_machine.apply_edit(current, requester_id, fields, leave_type=registry.find(new_type))

        members = await self._members()
        if updated.approver_id != current.approver_id:
            self.resolver.confirm(members, current.requester_id, updated.approver_id)

        await self._call("replace_request", self.store.replace_request(updated))
        logger.info(f"Leave request {request_id} edited by {requester_id}")

        plan, warnings = await self._dispatch(LifecycleEvent.EDITED, updated, members)
        return LifecycleOutcome(request=updated, notifications=plan, warnings=warnings)

    async def withdraw(
        self, request_id: str, requester_id: str, expected_status: Optional[LeaveStatus] = None
    ) -> LifecycleOutcome:
        current = await self._fetch(request_id)
        ensure_expected_status(current, expected_status, NotWithdrawableError)
        self.state_machine.ensure_withdrawable(current, requester_id)
        members = await self._members()

        await self._call("delete_request", self.store.delete_request(request_id))
        logger.info(f"Leave request {request_id} withdrawn by {requester_id}")

        plan, warnings = await self._dispatch(LifecycleEvent.WITHDRAWN, current, members)
        return LifecycleOutcome(request=current, notifications=plan, warnings=warnings)

    async def decide(
        self,
        request_id: str,
        actor: Actor,
        outcome: DecisionOutcome,
        comment: Optional[str] = None,
        expected_status: Optional[LeaveStatus] = None,
    ) -> LifecycleOutcome:
        current = await self._fetch(request_id)
        ensure_expected_status(current, expected_status, InvalidTransitionError)
        updated = self.state_machine.apply_decision(current, actor, outcome, comment)
        members = await self._members()

        await self._call("replace_request", self.store.replace_request(updated))
        logger.info(
            f"Leave request {request_id} {updated.status.value.lower()} by {actor.id}",
            extra={"actor": type(actor).__name__, "outcome": outcome.value},
        )

        plan, warnings = await self._dispatch(LifecycleEvent.DECIDED, updated, members, actor=actor, outcome=outcome)
        return LifecycleOutcome(request=updated, notifications=plan, warnings=warnings)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_request(self, request_id: str) -> LeaveRequestRecord:
        return await self._fetch(request_id)

    async def list_requests(self, filter: Optional[RequestFilter] = None) -> List[LeaveRequestRecord]:
        return await self._call("list_requests", self.store.list_requests(filter))

    async def pending_approvals(self, actor: Actor) -> List[LeaveRequestRecord]:
        """Approval queue for an actor. HR and Admin see everything still pending."""
        if isinstance(actor, (HRReviewer, Admin)):
            return await self.list_requests(RequestFilter(
                statuses=[LeaveStatus.PENDING_MANAGER_APPROVAL, LeaveStatus.PENDING_HR_APPROVAL]
            ))
        if isinstance(actor, LineManager):
            assigned = await self.list_requests(RequestFilter(
                approver_id=actor.id, statuses=[LeaveStatus.PENDING_MANAGER_APPROVAL]
            ))
            return [r for r in assigned if r.requester_id != actor.id]
        if isinstance(actor, Requester):
            return []
        raise TypeError(f"Unknown actor variant: {actor!r}")

    async def eligible_approvers(self, requester_id: str) -> List[MemberInfo]:
        return self.resolver.eligible_approvers(await self._members(), requester_id)

    async def leave_types(self, include_inactive: bool = False) -> List[LeaveTypeConfig]:
        registry = await self._registry()
        return registry.all() if include_inactive else registry.active()

    async def _approved_history(self, requester_id: str) -> List[LeaveRequestRecord]:
        return await self.list_requests(RequestFilter(requester_id=requester_id, statuses=[LeaveStatus.APPROVED]))

    async def balance(self, requester_id: str, leave_type_name: str) -> BalanceView:
        # Always a fresh read: a point-in-time estimate, never a reservation
        history = await self._approved_history(requester_id)
        return self.calculator.view(history, await self._registry(), requester_id, leave_type_name)

    async def remaining(self, requester_id: str, leave_type_name: str) -> float:
        return (await self.balance(requester_id, leave_type_name)).remaining_days

    async def balances(self, requester_id: str) -> List[BalanceView]:
        history = await self._approved_history(requester_id)
        return self.calculator.balances(history, await self._registry(), requester_id)
