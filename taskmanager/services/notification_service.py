from pathlib import Path
from typing import Annotated, Any, Dict, Optional
from fastapi import Depends
from jinja2 import Environment, FileSystemLoader, select_autoescape
from .mail_transport import build_transport
from ..utils.logger import get_logger

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def format_due_date(value) -> str:
    if value is None:
        return "no due date"
    return value.strftime("%B %d, %Y at %I:%M %p UTC")


templates.filters["due"] = format_due_date


class NotificationService:
    """
    Sends templated notifications.

    Delivery failures are logged and swallowed here, callers never see them
    and nothing is retried.
    """

    def __init__(self, transport=None):
        self._transport = transport

    @property
    def transport(self):
        if self._transport is None:
            self._transport = build_transport()
        return self._transport

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        return templates.get_template(f"{template_name}.html").render(**context)

    def send_email(self, to: str, subject: str, template_name: str, context: Dict[str, Any]) -> None:
        logger.info(f"Sending email to {to} with template: {template_name}")
        try:
            html_body = self.render(template_name, context)
            self.transport.send(to=to, subject=subject, html_body=html_body)
            logger.info(f"Email sent to {to} with subject: {subject}")
        except Exception as e:
            logger.error(f"Failed to send email to {to}: {e}")

    def send_push(self, user_id: int, title: str, body: Optional[str] = None) -> None:
        # No push provider is wired up yet, the message is only logged
        logger.info(f"Push notification to user {user_id} | {title}: {body or ''}")


notification_service = NotificationService()


def get_notifier() -> NotificationService:
    return notification_service


notifier_dependency = Annotated[NotificationService, Depends(get_notifier)]
