"""
Service wiring for the HTTP layer.

One database session per request backs the store, the directory and the
in-app notifier.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from leavedesk.database import get_db
from leavedesk.services.directory import SqlDirectory
from leavedesk.services.leave_lifecycle import LeaveLifecycleService
from leavedesk.services.notifier import MailSender, PortalNotifier
from leavedesk.services.store import SqlLeaveStore


def get_mail_sender() -> MailSender:
    return MailSender()


def get_leave_service(
    db: Session = Depends(get_db),
    mailer: MailSender = Depends(get_mail_sender),
) -> LeaveLifecycleService:
    return LeaveLifecycleService(
        store=SqlLeaveStore(db),
        directory=SqlDirectory(db),
        notifier=PortalNotifier(db, mailer=mailer),
    )


__all__ = ["get_leave_service", "get_mail_sender"]
