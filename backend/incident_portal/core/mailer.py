import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .config import settings

logger = logging.getLogger(__name__)


def _deliver(to: str, subject: str, html: str):
    msg = MIMEMultipart()
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(html, "html"))

    smtp_cls = smtplib.SMTP_SSL if settings.SMTP_SECURE else smtplib.SMTP
    with smtp_cls(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT) as server:
        if not settings.SMTP_SECURE:
            server.starttls()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
        server.send_message(msg)


async def send_mail(to: str, subject: str, html: str) -> bool:
    """Best-effort delivery. Returns True if sent, False otherwise; never raises."""
    if not settings.SMTP_HOST:
        logger.info("SMTP not configured, skipping mail to %s", to)
        return False
    try:
        await asyncio.to_thread(_deliver, to, subject, html)
    except Exception:
        logger.warning("SMTP send to %s failed", to, exc_info=True)
        return False
    logger.info("Mail sent to %s", to)
    return True


def reset_link(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/#/auth/reset?token={token}"


async def send_password_reset(to: str, token: str) -> bool:
    link = reset_link(token)
    html = f"""
    <html>
    <body style="font-family: Arial, sans-serif;">
        <h2>Password reset</h2>
        <p>We received a request to reset your password. Use the link below within
        {settings.PASSWORD_RESET_TTL_HOURS} hours:</p>
        <p><a href="{link}">{link}</a></p>
        <p>If you did not ask for this, you can ignore this email.</p>
    </body>
    </html>
    """
    return await send_mail(to, "Reset your password", html)
