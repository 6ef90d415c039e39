import secrets
import string

SLUG_ALPHABET = string.ascii_lowercase + string.digits

def generate_slug(length: int = 10) -> str:
    """Generate a URL-safe public identifier (lowercase letters and digits)"""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))
