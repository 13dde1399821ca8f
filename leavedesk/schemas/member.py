from typing import Optional

from pydantic import BaseModel, ConfigDict

from leavedesk.models.member import MemberRole


class MemberInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role_title: Optional[str] = ""
    role: MemberRole = MemberRole.EMPLOYEE
    is_active: bool = True
