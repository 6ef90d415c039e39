from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from guestlist.core.config import settings
from guestlist.core.deps import AdminIdentity, get_current_admin
from guestlist.core.errors import NotAuthenticated
from guestlist.core.security import create_session_token
from guestlist.db.session import get_db
from guestlist.schemas import (
    LoginRequest,
    LoginResponse,
    ResetPasswordConfirm,
    ResetPasswordRequest,
    SuccessResponse,
)
from guestlist.services import auth as auth_service

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(
    login_data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    admin = auth_service.authenticate(db, login_data.email, login_data.password)
    if admin is None:
        raise NotAuthenticated("Invalid email or password")

    # No max_age: the cookie lasts until the browser closes
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(admin.email),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/"
    )
    return LoginResponse(email=admin.email)


@router.post("/logout", response_model=SuccessResponse)
def logout(response: Response):
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")
    return SuccessResponse()


@router.get("/me")
def get_current_user_info(admin: AdminIdentity = Depends(get_current_admin)):
    """Get current authenticated admin info"""
    return {"email": admin.email, "is_admin": True}


@router.post("/reset-password", response_model=SuccessResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Always succeeds, whether or not the email is known"""
    auth_service.request_password_reset(db, payload.email)
    return SuccessResponse()


@router.post("/reset-password/confirm", response_model=SuccessResponse)
def confirm_reset_password(payload: ResetPasswordConfirm, db: Session = Depends(get_db)):
    auth_service.confirm_password_reset(db, payload.token, payload.password)
    return SuccessResponse()
