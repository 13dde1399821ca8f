"""
Acting-identity dependencies.

Authentication happens upstream of this service; the caller's member id
arrives in the X-Actor-Id header and is resolved against the directory into
an Actor variant. Nothing reads identity from ambient state.
"""
import logging
from typing import Optional

from fastapi import Depends, Header

from leavedesk.core.exceptions import AuthenticationError
from leavedesk.dependencies import get_leave_service
from leavedesk.services.actors import Actor
from leavedesk.services.leave_lifecycle import LeaveLifecycleService

logger = logging.getLogger(__name__)


async def get_current_actor(
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    service: LeaveLifecycleService = Depends(get_leave_service),
) -> Actor:
    if not x_actor_id:
        logger.warning("Request rejected: missing X-Actor-Id header")
        raise AuthenticationError("Missing X-Actor-Id header")
    return await service.resolve_actor(x_actor_id)
