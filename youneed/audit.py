# youneed/audit.py

import logging
from typing import Optional

from sqlmodel import Session

from .models import AuditLog, User, UserRole

logger = logging.getLogger(__name__)


def log_audit_action(
    session: Session,
    action: str,
    details: Optional[dict] = None,
    actor: Optional[User] = None,
    ip: Optional[str] = None,
    target_user_id: Optional[int] = None,
    target_resource_id: Optional[int] = None,
    target_resource_type: Optional[str] = None,
) -> Optional[AuditLog]:
    """Write one audit record. Never raises; failures only reach the log."""
    details = dict(details or {})
    if actor is not None:
        details.setdefault("user_id", actor.id)
        details.setdefault("role", actor.role.value)

    try:
        entry = AuditLog(
            admin_id=actor.id if actor is not None and actor.role == UserRole.admin else None,
            action=action,
            details=details,
            ip=ip,
            target_user_id=target_user_id,
            target_resource_id=target_resource_id,
            target_resource_type=target_resource_type,
        )
        session.add(entry)
        session.commit()
        return entry
    except Exception:
        session.rollback()
        logger.exception(f"Failed to log audit action {action}: {details}")
        return None
