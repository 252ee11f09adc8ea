# youneed/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from youneed.audit import log_audit_action
from youneed.auth import get_current_user, hash_password
from youneed.db import get_session
from youneed.deps import client_ip
from youneed.models import User, UserRole
from youneed.schemas import UserCreate, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    request: Request,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    email = user.email.strip().lower()
    existing = session.exec(
        select(User).where(User.email == email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB
    db_user = User(
        email=email,
        password_hash=hash_password(user.password),
        role=UserRole(user.role),
        first_name=user.first_name,
        last_name=user.last_name,
        company_name=user.company_name,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id
    result = UserPublic.model_validate(db_user)
    logger.info(f"Registered {db_user.role.value} {db_user.id}")

    log_audit_action(
        session,
        "register_user",
        {"email": email, "role": user.role},
        ip=client_ip(request),
        target_user_id=result.id,
    )
    return result
