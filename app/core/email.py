import smtplib
from email.message import EmailMessage
from app.core.config import Settings, get_settings


class EmailNotConfigured(RuntimeError):
    pass


def build_message(sender: str, to_email: str, subject: str, html_body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content("This email requires an HTML-capable client.")
    msg.add_alternative(html_body, subtype="html")
    return msg


def _require_smtp(settings: Settings) -> None:
    missing = [
        name
        for name, value in (
            ("SMTP_HOST", settings.smtp_host),
            ("SMTP_USER", settings.smtp_user),
            ("SMTP_PASS", settings.smtp_pass),
            ("SMTP_FROM", settings.smtp_from),
        )
        if not value
    ]
    if missing:
        raise EmailNotConfigured(f"SMTP settings are not configured: {', '.join(missing)}")


def send_email(to_email: str, subject: str, html_body: str):
    settings = get_settings()
    _require_smtp(settings)
    msg = build_message(settings.smtp_from, to_email, subject, html_body)

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds) as server:
        server.starttls()
        server.login(settings.smtp_user, settings.smtp_pass)
        server.send_message(msg)
