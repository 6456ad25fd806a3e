from email.mime.text import MIMEText
import base64
from typing import Optional
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from google.auth.exceptions import RefreshError
from ..core import config
from ..utils.logger import get_logger

logger = get_logger(__name__)

GMAIL_SEND_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


class MailTransportError(Exception):
    pass


class ConsoleTransport:
    """Writes outgoing mail to the log instead of delivering it."""

    def __init__(self, sender: str = config.MAIL_FROM):
        self.sender = sender

    def send(self, to: str, subject: str, html_body: str):
        logger.info(f"[console mail] from={self.sender} to={to} subject={subject}")
        logger.debug(html_body)


class GmailTransport:
    def __init__(
        self,
        refresh_token: Optional[str] = config.GMAIL_REFRESH_TOKEN,
        client_id: Optional[str] = config.GOOGLE_CLIENT_ID,
        client_secret: Optional[str] = config.GOOGLE_CLIENT_SECRET,
        sender: str = config.MAIL_FROM,
    ):
        if not refresh_token:
            raise ValueError("GMAIL_REFRESH_TOKEN is required for the gmail mail transport")

        self.sender = sender
        self.creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri="https://oauth2.googleapis.com/token",
            client_id=client_id,
            client_secret=client_secret,
            scopes=GMAIL_SEND_SCOPES,
        )
        self._service = None

    @property
    def service(self):
        if self._service is None:
            self._service = build("gmail", "v1", credentials=self.creds, cache_discovery=False)
        return self._service

    def send(self, to: str, subject: str, html_body: str):
        try:
            message = MIMEText(html_body, "html")
            message["to"] = to
            message["from"] = self.sender
            message["subject"] = subject

            raw_message = base64.urlsafe_b64encode(message.as_bytes()).decode()
            return self.service.users().messages().send(
                userId="me",
                body={"raw": raw_message}
            ).execute()
        except RefreshError as error:
            raise MailTransportError(f"Gmail token refresh failed: {error}") from error
        except HttpError as error:
            raise MailTransportError(f"Gmail API error: {error}") from error


def build_transport(kind: str = config.MAIL_TRANSPORT):
    if kind == "gmail":
        return GmailTransport()
    if kind != "console":
        logger.warning(f"Unknown MAIL_TRANSPORT '{kind}', using console transport")
    return ConsoleTransport()
