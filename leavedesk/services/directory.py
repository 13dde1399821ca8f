from typing import List, Protocol

from sqlalchemy.orm import Session

from leavedesk.models.member import Member
from leavedesk.schemas.member import MemberInfo


class Directory(Protocol):
    async def list_members(self) -> List[MemberInfo]: ...


class SqlDirectory:
    """People directory backed by the members table."""

    def __init__(self, db: Session):
        self.db = db

    async def list_members(self) -> List[MemberInfo]:
        rows = self.db.query(Member).order_by(Member.name).all()
        return [MemberInfo.model_validate(row) for row in rows]
