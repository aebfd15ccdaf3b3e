# backend/services/email_service.py
import os
import logging
import smtplib
from email.mime.text import MIMEText
from dotenv import load_dotenv
from fastapi.concurrency import run_in_threadpool

load_dotenv()

logger = logging.getLogger(__name__)

OTP_SUBJECT = "OTP for email verification"


def build_otp_message(sender: str, to: str, otp: str) -> MIMEText:
    body = f"<p>Your OTP for signup at second brain is <strong>{otp}</strong></p>"
    message = MIMEText(body, "html")
    message["From"] = sender
    message["To"] = to
    message["Subject"] = OTP_SUBJECT
    return message


def _send(message: MIMEText):
    host = os.getenv("EMAIL_HOST")
    if not host:
        raise RuntimeError("EMAIL_HOST is not set in .env file")
    port = int(os.getenv("EMAIL_PORT", "587"))
    user = os.getenv("EMAIL_USER")
    password = os.getenv("EMAIL_PASSWORD")
    with smtplib.SMTP(host, port, timeout=10) as server:
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls()
            server.ehlo()
        if user and password:
            server.login(user, password)
        server.send_message(message)


async def send_otp_email(email: str, otp: str):
    """Mail the signup code. smtplib blocks, so it runs in the threadpool."""
    message = build_otp_message(os.getenv("EMAIL_USER") or "", email, otp)
    await run_in_threadpool(_send, message)
    logger.info("OTP email sent to %s", email)
