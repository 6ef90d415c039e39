import base64
import hashlib
import hmac
import secrets
import time
from typing import Optional

from guestlist.core.config import settings

SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_DKLEN = 64


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_DKLEN,
    )


def hash_password(password: str) -> str:
    """Hash a password as ``salt:hash`` (both hex)"""
    salt = secrets.token_hex(16)
    return f"{salt}:{_scrypt(password, salt).hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a password against a stored ``salt:hash`` value"""
    salt, sep, expected = stored.partition(":")
    if not sep or not expected:
        return False
    try:
        expected_bytes = bytes.fromhex(expected)
    except ValueError:
        return False
    return hmac.compare_digest(_scrypt(password, salt), expected_bytes)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _sign(data: str, key: str) -> str:
    return hmac.new(key.encode(), data.encode(), hashlib.sha256).hexdigest()


def _encode(data: str, signature: str) -> str:
    raw = f"{data}:{signature}".encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _decode(token: str) -> Optional[tuple]:
    """Split a token into (subject, number, signature); None when malformed"""
    try:
        padded = token + "=" * (-len(token) % 4)
        decoded = base64.urlsafe_b64decode(padded.encode()).decode()
    except (ValueError, UnicodeError):
        return None
    parts = decoded.rsplit(":", 2)
    if len(parts) != 3 or not all(parts):
        return None
    subject, number, signature = parts
    if not (number.isascii() and number.isdecimal()):
        return None
    return subject, number, signature


def create_session_token(email: str) -> str:
    """Signed session token: base64url(email:issued_ms:hmac)"""
    data = f"{email}:{_now_ms()}"
    return _encode(data, _sign(data, settings.SESSION_SECRET))


def verify_session_token(token: Optional[str]) -> Optional[str]:
    """Return the session subject, or None for any invalid token"""
    if not token:
        return None
    parts = _decode(token)
    if parts is None:
        return None
    email, issued, signature = parts
    expected = _sign(f"{email}:{issued}", settings.SESSION_SECRET)
    if not hmac.compare_digest(expected.encode(), signature.encode()):
        return None
    return email


def create_reset_token(email: str, password_hash: str, now_ms: Optional[int] = None) -> str:
    """
    Password reset token bound to the current password hash.

    The signing key is the session secret followed by the stored hash, so
    any password change invalidates every outstanding reset token.
    """
    issued = now_ms if now_ms is not None else _now_ms()
    expiry = issued + settings.RESET_TOKEN_EXPIRE_MINUTES * 60 * 1000
    data = f"{email}:{expiry}"
    return _encode(data, _sign(data, settings.SESSION_SECRET + password_hash))


def reset_token_subject(token: str) -> Optional[str]:
    """Unverified subject of a reset token, used to look up the admin row"""
    parts = _decode(token)
    return parts[0] if parts else None


def verify_reset_token(token: str, password_hash: str, now_ms: Optional[int] = None) -> Optional[str]:
    """Return the token's email if it is intact, unexpired and matches the hash"""
    parts = _decode(token)
    if parts is None:
        return None
    email, expiry, signature = parts
    current = now_ms if now_ms is not None else _now_ms()
    if current > int(expiry):
        return None
    expected = _sign(f"{email}:{expiry}", settings.SESSION_SECRET + password_hash)
    if not hmac.compare_digest(expected.encode(), signature.encode()):
        return None
    return email
