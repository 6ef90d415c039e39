import logging
from typing import Optional

from sqlalchemy.orm import Session

from guestlist.core.config import settings
from guestlist.core.errors import ValidationFailed
from guestlist.core.security import (
    create_reset_token,
    hash_password,
    reset_token_subject,
    verify_password,
    verify_reset_token,
)
from guestlist.models.admin import ADMIN_ID, AdminConfig
from guestlist.services.email import send_password_reset_email

logger = logging.getLogger(__name__)

INVALID_RESET = "Invalid or expired reset link"


def get_admin_by_email(db: Session, email: str) -> Optional[AdminConfig]:
    return db.query(AdminConfig).filter(AdminConfig.email == email.strip().lower()).first()


def authenticate(db: Session, email: str, password: str) -> Optional[AdminConfig]:
    admin = get_admin_by_email(db, email)
    if admin is None or not verify_password(password, admin.password_hash):
        logger.warning(f"Failed login attempt for {email}")
        return None
    logger.info(f"🔑 Admin {admin.email} logged in")
    return admin


def check_password_policy(password: str) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")


def request_password_reset(db: Session, email: str) -> Optional[str]:
    """
    Issue and mail a reset token when the email belongs to the admin.

    Returns the token (None for unknown emails). Callers must answer the
    same way in both cases.
    """
    admin = get_admin_by_email(db, email)
    if admin is None:
        logger.info("Password reset requested for unknown email")
        return None

    token = create_reset_token(admin.email, admin.password_hash)
    send_password_reset_email(admin.email, token)
    logger.info(f"Password reset issued for {admin.email}")
    return token


def confirm_password_reset(db: Session, token: str, password: str) -> AdminConfig:
    """
    Set a new password from a reset token.

    Every token failure (malformed, wrong signature, expired, already used)
    is reported with the same message.
    """
    check_password_policy(password)

    subject = reset_token_subject(token)
    admin = get_admin_by_email(db, subject) if subject else None
    if admin is None or verify_reset_token(token, admin.password_hash) is None:
        raise ValidationFailed(INVALID_RESET)

    try:
        admin.password_hash = hash_password(password)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"🔐 Password reset completed for {admin.email}")
    return admin


def seed_admin(db: Session, email: str, password: str) -> AdminConfig:
    """Create or replace the singleton admin credentials"""
    check_password_policy(password)
    password_hash = hash_password(password)

    admin = db.query(AdminConfig).filter(AdminConfig.id == ADMIN_ID).first()
    try:
        if admin is None:
            admin = AdminConfig(id=ADMIN_ID, email=email.strip().lower(), password_hash=password_hash)
            db.add(admin)
        else:
            admin.email = email.strip().lower()
            admin.password_hash = password_hash
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(admin)
    return admin
