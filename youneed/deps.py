# youneed/deps.py

from typing import Optional

from fastapi import Query, Request

from .config import settings
from .errors import AuthorizationError
from .models import User, UserRole


def require_role(user: User, *roles: UserRole):
    if user.role not in roles:
        raise AuthorizationError("Brak dostępu dla tej roli")


class Page:
    """`?page=&limit=` query parameters, limit capped at the configured maximum."""

    def __init__(self, page: int = Query(1, ge=1), limit: Optional[int] = Query(None, ge=1)):
        self.page = page
        self.limit = min(limit or settings.default_page_limit, settings.max_page_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None
