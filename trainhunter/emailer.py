"""Email delivery of rendered reports using yagmail.

Isolated from search logic for easier mocking/testing.
"""
import logging

import yagmail

from .config import Settings, settings as default_settings


def send_report(subject: str, html_body: str, settings: Settings | None = None) -> bool:
    settings = settings or default_settings
    if not settings.email_configured():
        logging.warning("Email not sent: email credentials not fully configured.")
        return False
    yag = yagmail.SMTP(settings.src_mail, settings.src_pwd, port=587, smtp_starttls=True, smtp_ssl=False)
    yag.send(to=settings.dst_mail, subject=subject, contents=html_body)
    logging.info("Email sent to %s", settings.dst_mail)
    return True
