from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from leavedesk.core.exceptions import NotAuthorizedError
from leavedesk.core.schemas import ApiResponse
from leavedesk.dependencies import get_leave_service
from leavedesk.models.leave_request import LeaveStatus
from leavedesk.routers.auth_deps import get_current_actor
from leavedesk.schemas.leave import (
    BalanceView,
    LeaveDecisionRequest,
    LeaveRequestCreate,
    LeaveRequestRecord,
    LeaveRequestUpdate,
    LeaveTypeConfig,
    LifecycleOutcome,
    RequestFilter,
)
from leavedesk.schemas.member import MemberInfo
from leavedesk.services.actors import Actor, Requester, is_hr_or_admin
from leavedesk.services.leave_lifecycle import LeaveLifecycleService

router = APIRouter(prefix="/leave", tags=["leave"])


# --- Policy (read-only) ---

@router.get("/types", response_model=ApiResponse[List[LeaveTypeConfig]])
async def list_leave_types(
    include_inactive: bool = False,
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    return ApiResponse.ok(await service.leave_types(include_inactive=include_inactive))


# --- Requester operations ---

@router.post("/requests", response_model=ApiResponse[LifecycleOutcome])
async def submit_leave_request(
    payload: LeaveRequestCreate,
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    return ApiResponse.ok(await service.submit(actor.id, payload))


@router.put("/requests/{request_id}", response_model=ApiResponse[LifecycleOutcome])
async def edit_leave_request(
    request_id: str,
    changes: LeaveRequestUpdate,
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    return ApiResponse.ok(await service.edit(request_id, actor.id, changes))


@router.delete("/requests/{request_id}", response_model=ApiResponse[LifecycleOutcome])
async def withdraw_leave_request(
    request_id: str,
    expected_status: Optional[LeaveStatus] = None,
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    return ApiResponse.ok(await service.withdraw(request_id, actor.id, expected_status=expected_status))


@router.get("/approvers", response_model=ApiResponse[List[MemberInfo]])
async def list_eligible_approvers(
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    """Managers the caller may pick as approver. An empty list means the UI must block submission."""
    return ApiResponse.ok(await service.eligible_approvers(actor.id))


# --- Approver operations ---

@router.post("/requests/{request_id}/decision", response_model=ApiResponse[LifecycleOutcome])
async def decide_leave_request(
    request_id: str,
    decision: LeaveDecisionRequest,
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    return ApiResponse.ok(await service.decide(
        request_id,
        actor,
        decision.outcome,
        comment=decision.comment,
        expected_status=decision.expected_status,
    ))


@router.get("/approvals/pending", response_model=ApiResponse[List[LeaveRequestRecord]])
async def pending_approvals(
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    return ApiResponse.ok(await service.pending_approvals(actor))


# --- Reads ---

@router.get("/requests", response_model=ApiResponse[List[LeaveRequestRecord]])
async def list_leave_requests(
    requester_id: Optional[str] = None,
    approver_id: Optional[str] = None,
    leave_type_name: Optional[str] = None,
    status: Optional[List[LeaveStatus]] = Query(default=None),
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    # Without HR authority callers only see their own requests or the ones assigned to them
    if not is_hr_or_admin(actor) and approver_id != actor.id:
        requester_id = actor.id
    return ApiResponse.ok(await service.list_requests(RequestFilter(
        requester_id=requester_id,
        approver_id=approver_id,
        leave_type_name=leave_type_name,
        statuses=status,
    )))


@router.get("/requests/{request_id}", response_model=ApiResponse[LeaveRequestRecord])
async def get_leave_request(
    request_id: str,
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    request = await service.get_request(request_id)
    involved = actor.id in (request.requester_id, request.approver_id) or actor.id in request.notify_ids
    if not involved and not is_hr_or_admin(actor):
        raise NotAuthorizedError("You are not involved in this leave request")
    return ApiResponse.ok(request)


@router.get("/balance/{requester_id}", response_model=ApiResponse[List[BalanceView]])
async def get_leave_balance(
    requester_id: str,
    leave_type_name: Optional[str] = None,
    service: LeaveLifecycleService = Depends(get_leave_service),
    actor: Actor = Depends(get_current_actor),
):
    """Point-in-time balances, recomputed from approved history on every call."""
    if isinstance(actor, Requester) and requester_id != actor.id:
        raise NotAuthorizedError("You can only view your own leave balance")
    if leave_type_name:
        return ApiResponse.ok([await service.balance(requester_id, leave_type_name)])
    return ApiResponse.ok(await service.balances(requester_id))
