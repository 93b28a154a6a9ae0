from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from venuebook.core.deps import get_current_user, get_db
from venuebook.core.security import create_access_token
from venuebook.models.user import User
from venuebook.schemas.auth import LoginRequest, MeResponse, RegisterRequest, TokenResponse
from venuebook.services.audit_service import write_audit_log
from venuebook.services.auth_service import authenticate_user, register_user, upgrade_to_host

router = APIRouter()


def _token_for(user: User) -> TokenResponse:
    return TokenResponse(access_token=create_access_token(user.id, {"role": user.role}))


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = register_user(db, email=str(payload.email), name=payload.name, password=payload.password)
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, email=str(payload.email), password=payload.password)
    return _token_for(user)


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return MeResponse(user_id=user.id, email=user.email, name=user.name, role=user.role)


@router.post("/upgrade-to-host", response_model=TokenResponse)
def become_host(request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    previous = user.role
    user = upgrade_to_host(db, user=user)
    if user.role != previous:
        write_audit_log(db, actor=user, action_type="USER_UPGRADE_TO_HOST", target_type="user", target_id=user.id, summary="Upgraded to host", request=request)
    # Role claim changed, hand out a fresh token
    return _token_for(user)
