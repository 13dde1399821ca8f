"""
Acting identities.

Every lifecycle operation receives the actor explicitly. An actor is one of
four closed variants; authority checks match on the variant, never on a
free-text title.
"""
from dataclasses import dataclass
from typing import Union

from leavedesk.core.config import settings
from leavedesk.models.member import MemberRole
from leavedesk.schemas.member import MemberInfo


@dataclass(frozen=True)
class LineManager:
    id: str
    name: str = ""


@dataclass(frozen=True)
class HRReviewer:
    id: str
    name: str = ""


@dataclass(frozen=True)
class Admin:
    id: str
    name: str = ""


@dataclass(frozen=True)
class Requester:
    id: str
    name: str = ""


Actor = Union[LineManager, HRReviewer, Admin, Requester]


def has_manager_title(role_title: str, token: str = None) -> bool:
    token = (token or settings.approver_title_token).lower()
    return token in (role_title or "").lower()


def actor_for(member: MemberInfo, title_token: str = None) -> Actor:
    """
    Resolve a directory member to an actor variant.
    HR and Admin system roles win; otherwise a manager role or a title containing
    the approver token makes a line manager.
    """
    if member.role == MemberRole.ADMIN:
        return Admin(id=member.id, name=member.name)
    if member.role == MemberRole.HR:
        return HRReviewer(id=member.id, name=member.name)
    if member.role == MemberRole.MANAGER or has_manager_title(member.role_title, title_token):
        return LineManager(id=member.id, name=member.name)
    return Requester(id=member.id, name=member.name)


def is_hr_or_admin(actor: Actor) -> bool:
    if isinstance(actor, (HRReviewer, Admin)):
        return True
    if isinstance(actor, (LineManager, Requester)):
        return False
    raise TypeError(f"Unknown actor variant: {actor!r}")
