import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from guestlist.core.config import settings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Reset Your Password"


def reset_url(token: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/reset-password/{token}"


def _reset_bodies(url: str, expire_minutes: int):
    text = (
        "You requested to reset your password.\n\n"
        f"Open this link to set a new password:\n{url}\n\n"
        f"This link expires in {expire_minutes} minutes. "
        "If you didn't request this, you can ignore this email.\n"
    )
    html = f"""
    <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="font-size: 24px; font-weight: 600;">Reset Your Password</h1>
      <p>You requested to reset your password. Click the button below to set a new password.</p>
      <a href="{url}" style="display: inline-block; background-color: #374151; color: white; padding: 12px 24px; text-decoration: none; border-radius: 9999px;">Reset Password</a>
      <p style="color: #999;">This link expires in {expire_minutes} minutes. If you didn't request this, you can ignore this email.</p>
      <p style="color: #999;">Or copy and paste this URL into your browser:<br><a href="{url}">{url}</a></p>
    </div>
    """
    return text, html


def send_email(to_email: str, subject: str, text: str, html: str) -> bool:
    """Send a multipart email. Returns True if successful, False otherwise."""
    if not settings.SMTP_SERVER:
        logger.warning(f"SMTP not configured; email to {to_email} not sent")
        return False

    from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME
    msg = MIMEMultipart("alternative")
    msg["From"] = formataddr((settings.SMTP_FROM_NAME, from_email))
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))

    try:
        with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT, timeout=10) as server:
            server.starttls()
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ Failed to send email to {to_email}: {e}")
        return False

    logger.info(f"📧 Email sent to {to_email}")
    return True


def send_password_reset_email(email: str, token: str) -> bool:
    url = reset_url(token)
    if not settings.SMTP_SERVER:
        # Local development: the link is only available in the log
        logger.warning(f"Password reset link for {email}: {url}")
        return False
    text, html = _reset_bodies(url, settings.RESET_TOKEN_EXPIRE_MINUTES)
    return send_email(email, RESET_SUBJECT, text, html)
