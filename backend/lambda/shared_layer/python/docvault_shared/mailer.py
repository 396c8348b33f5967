"""docvault_shared.mailer — Contact-form email relay over Amazon SES v2."""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import _get_sesv2
from .config import Settings

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "Portfolio Contact: "
MAX_SUBJECT_LENGTH = 200
MAX_MESSAGE_LENGTH = 10_000

_EMAIL_RE = re.compile(r"^[^@\s<>]+@[^@\s<>]+\.[^@\s<>]+$")


class MailerError(Exception):
    """Relay call failed. The message is for logs only."""


@dataclass(frozen=True)
class ContactMessage:
    name: str
    email: str
    subject: str
    message: str

    def subject_line(self) -> str:
        return f"{SUBJECT_PREFIX}{self.subject}"

    def to_html(self) -> str:
        # Every field is visitor-controlled.
        name = html.escape(self.name)
        email = html.escape(self.email)
        subject = html.escape(self.subject)
        body = html.escape(self.message).replace("\n", "<br>")
        return (
            "<h2>Nouveau message de contact</h2>"
            f"<p><strong>De:</strong> {name} ({email})</p>"
            f"<p><strong>Sujet:</strong> {subject}</p>"
            "<p><strong>Message:</strong></p>"
            f"<p>{body}</p>"
        )


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value or ""))


class EmailRelay:
    def __init__(self, client: Any, sender: str) -> None:
        self._client = client
        self.sender = sender

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailRelay":
        return cls(_get_sesv2(settings), settings.contact_sender)

    def send(self, to: str, subject: str, html_body: str, reply_to: Optional[str] = None) -> str:
        """Send one HTML email. Returns the SES message id."""
        if not self.sender or not to:
            raise MailerError("contact relay is not configured (sender/recipient missing)")
        request: Dict[str, Any] = {
            "FromEmailAddress": self.sender,
            "Destination": {"ToAddresses": [to]},
            "Content": {
                "Simple": {
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {"Html": {"Data": html_body, "Charset": "UTF-8"}},
                }
            },
        }
        if reply_to:
            request["ReplyToAddresses"] = [reply_to]
        try:
            resp = self._client.send_email(**request)
        except (BotoCoreError, ClientError) as exc:
            raise MailerError(f"send_email failed: {exc}") from exc
        message_id = str(resp.get("MessageId") or "")
        logger.info("contact email sent: message_id=%s", message_id)
        return message_id
