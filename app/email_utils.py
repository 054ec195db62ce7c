"""
Plain-text email over SMTP (STARTTLS).

Settings come from EMAIL_USER, EMAIL_PASSWORD, EMAIL_FROM, SMTP_SERVER and
SMTP_PORT. Gmail rewrites the sender to the authenticated account, so the
From header follows EMAIL_USER there.
"""
from __future__ import annotations

import os
import smtplib
from email.mime.text import MIMEText
from typing import NamedTuple, Optional

DEFAULT_SENDER = "noreply@hsc-classifieds.com"
SMTP_TIMEOUT_SECONDS = 20


class SmtpSettings(NamedTuple):
    user: Optional[str]
    password: Optional[str]
    sender: str
    server: str
    port: int


def smtp_settings() -> SmtpSettings:
    user = os.getenv("EMAIL_USER")
    server = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    if "gmail" in server.lower() and user:
        sender = user
    else:
        sender = os.getenv("EMAIL_FROM") or user or DEFAULT_SENDER
    return SmtpSettings(
        user=user,
        password=os.getenv("EMAIL_PASSWORD"),
        sender=sender,
        server=server,
        port=int(os.getenv("SMTP_PORT", "587")),
    )


def send_text_email(to_email: str, subject: str, body: str) -> None:
    settings = smtp_settings()
    if not (settings.user and settings.password):
        raise RuntimeError("Email credentials not configured. Set EMAIL_USER and EMAIL_PASSWORD.")

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = settings.sender
    msg["To"] = to_email

    with smtplib.SMTP(settings.server, settings.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
        server.starttls()
        server.login(settings.user, settings.password)
        server.sendmail(settings.sender, [to_email], msg.as_string())


def send_magic_link_email(to_email: str, link: str, minutes: int) -> None:
    send_text_email(
        to_email=to_email,
        subject="Your sign-in link for HSC Classifieds",
        body=(
            "Click the link below to sign in:\n\n"
            f"{link}\n\n"
            f"This link expires in {minutes} minutes and can only be used once.\n"
            "If you did not ask to sign in, you can ignore this email."
        ),
    )


__all__ = ["SmtpSettings", "smtp_settings", "send_text_email", "send_magic_link_email"]
