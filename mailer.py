# mailer.py
import smtplib
from email.mime.text import MIMEText
from flask import current_app

from logging_setup import get_logger

LOG = get_logger("bookstore.mailer")


class MailNotConfiguredError(RuntimeError):
    """Raised when no SMTP server or recipient is configured."""


def send_contact_message(name, email, subject, message):
    cfg = current_app.config
    server_name = cfg.get("MAIL_SERVER")
    recipient = cfg.get("CONTACT_RECIPIENT")
    if not server_name or not recipient:
        raise MailNotConfiguredError("MAIL_SERVER and CONTACT_RECIPIENT must be set")

    sender = cfg.get("MAIL_DEFAULT_SENDER") or cfg.get("MAIL_USERNAME") or recipient
    msg = MIMEText(f"Name: {name}\nEmail: {email}\nMessage:\n{message}\n", "plain", "utf-8")
    msg["From"] = sender
    msg["To"] = recipient
    msg["Reply-To"] = email
    msg["Subject"] = f"New Contact Form Message: {subject}"

    server = smtplib.SMTP(server_name, cfg.get("MAIL_PORT", 587))
    try:
        if cfg.get("MAIL_USE_TLS"):
            server.starttls()
        if cfg.get("MAIL_USERNAME"):
            server.login(cfg["MAIL_USERNAME"], cfg.get("MAIL_PASSWORD") or "")
        server.sendmail(sender, [recipient], msg.as_string())
    finally:
        server.quit()
    LOG.info("Contact message from %s sent to %s", email, recipient)
