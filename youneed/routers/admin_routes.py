# youneed/routers/admin_routes.py

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlmodel import Session, select

from youneed.auth import get_current_user
from youneed.db import get_session
from youneed.deps import Page, require_role
from youneed.models import AuditLog, User, UserRole
from youneed.schemas import AuditLogPage

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


@router.get("/audit-logs", response_model=AuditLogPage)
def list_audit_logs(
    action: Optional[str] = None,
    page: Page = Depends(),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin)

    stmt = select(AuditLog)
    count_stmt = select(func.count(AuditLog.id))
    if action:
        stmt = stmt.where(AuditLog.action == action)
        count_stmt = count_stmt.where(AuditLog.action == action)

    logs = session.exec(
        stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    ).all()

    return {
        "logs": logs,
        "total": session.exec(count_stmt).one(),
        "page": page.page,
        "limit": page.limit,
    }
