"""
Leave store collaborator.

The engine only depends on the `LeaveStore` protocol; `SqlLeaveStore` is the
SQLAlchemy implementation used by the API. Each write commits on its own so a
lifecycle operation is durable as soon as its single store write returns.
"""
from typing import Any, Dict, List, Optional, Protocol
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leavedesk.models.leave_request import LeaveRequest
from leavedesk.models.leave_type import LeaveType
from leavedesk.schemas.leave import LeaveRequestRecord, LeaveTypeConfig, RequestFilter

logger = logging.getLogger(__name__)


class LeaveStore(Protocol):
    async def list_requests(self, filter: Optional[RequestFilter] = None) -> List[LeaveRequestRecord]: ...

    async def create_request(self, request: LeaveRequestRecord) -> None: ...

    async def replace_request(self, request: LeaveRequestRecord) -> None: ...

    async def delete_request(self, request_id: str) -> None: ...

    async def list_leave_types(self) -> List[LeaveTypeConfig]: ...


def _columns(record: LeaveRequestRecord) -> Dict[str, Any]:
    data = record.model_dump()
    data["status"] = record.status.value
    data["duration_kind"] = record.duration_kind.value
    data["notify_ids"] = list(record.notify_ids)
    return data


class SqlLeaveStore:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    async def list_requests(self, filter: Optional[RequestFilter] = None) -> List[LeaveRequestRecord]:
        filter = filter or RequestFilter()
        # populate_existing: always re-read rows, never trust the identity map
        query = self.db.query(LeaveRequest).populate_existing()
        if filter.request_id:
            query = query.filter(LeaveRequest.id == filter.request_id)
        if filter.requester_id:
            query = query.filter(LeaveRequest.requester_id == filter.requester_id)
        if filter.approver_id:
            query = query.filter(LeaveRequest.approver_id == filter.approver_id)
        if filter.leave_type_name:
            query = query.filter(LeaveRequest.leave_type_name == filter.leave_type_name)
        if filter.statuses:
            query = query.filter(LeaveRequest.status.in_([s.value for s in filter.statuses]))
        rows = query.order_by(LeaveRequest.created_at.desc()).all()
        return [LeaveRequestRecord.model_validate(row) for row in rows]

    async def create_request(self, request: LeaveRequestRecord) -> None:
        self.db.add(LeaveRequest(**_columns(request)))
        self._commit()

    async def replace_request(self, request: LeaveRequestRecord) -> None:
        row = self.db.get(LeaveRequest, request.id)
        if row is None:
            raise LookupError(f"leave request {request.id} does not exist")
        for key, value in _columns(request).items():
            if key in ("id", "requester_id", "created_at"):
                continue
            setattr(row, key, value)
        self._commit()

    async def delete_request(self, request_id: str) -> None:
        row = self.db.get(LeaveRequest, request_id)
        if row is None:
            raise LookupError(f"leave request {request_id} does not exist")
        self.db.delete(row)
        self._commit()

    async def list_leave_types(self) -> List[LeaveTypeConfig]:
        rows = self.db.query(LeaveType).order_by(LeaveType.id).all()
        return [LeaveTypeConfig.model_validate(row) for row in rows]
