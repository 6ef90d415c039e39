from dataclasses import dataclass
from typing import Optional

from fastapi import Cookie, Depends

from guestlist.core.config import settings
from guestlist.core.errors import NotAuthenticated
from guestlist.core.security import verify_session_token


@dataclass(frozen=True)
class AdminIdentity:
    """The authenticated organizer, handed explicitly to each admin handler"""
    email: str


def get_session_token(
    token: Optional[str] = Cookie(default=None, alias=settings.SESSION_COOKIE_NAME),
) -> Optional[str]:
    return token


def get_current_admin(token: Optional[str] = Depends(get_session_token)) -> AdminIdentity:
    """
    Validates the session cookie. If valid, returns the admin identity.
    If missing or invalid, raises 401 Unauthorized.
    """
    email = verify_session_token(token)
    if email is None:
        raise NotAuthenticated()
    return AdminIdentity(email=email)
