import os
import logging
from datetime import datetime
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, To

from app.core.config import settings
from app.core.constants import ASSESSMENT_COMPLETED_EVENT
from app.utils.events import event_bus

logger = logging.getLogger(__name__)


class EmailService:
    _template_env = None

    @classmethod
    def _get_template_env(cls):
        if cls._template_env is None:
            template_dir = os.path.join(
                os.path.dirname(os.path.abspath(__file__)),
                '..',
                'templates'
            )
            cls._template_env = Environment(
                loader=FileSystemLoader(template_dir),
                autoescape=select_autoescape(['html']),
            )
        return cls._template_env

    @classmethod
    def render_template(cls, template_name: str, context: dict) -> str:
        default_context = {
            'company_name': settings.EMAILS_FROM_NAME,
            'current_year': datetime.now().year,
            **context
        }
        template = cls._get_template_env().get_template(template_name)
        return template.render(**default_context)

    @classmethod
    def send_email(cls, to_email: str, subject: str, template_name: str, template_context: dict):
        html_content = cls.render_template(template_name, template_context)

        message = Mail(
            from_email=f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>",
            to_emails=To(to_email),
            subject=subject,
            html_content=html_content
        )

        response = SendGridAPIClient(settings.SENDGRID_API_KEY).send(message)
        if response.status_code not in [200, 201, 202]:
            raise RuntimeError(f"SendGrid API error: {response.status_code} - {response.body}")

        logger.info(f"Email sent successfully to {to_email} via SendGrid")

    @classmethod
    def send_assessment_result_email(cls, data: Dict[str, Any]) -> bool:
        to_email = data.get("user_email")
        if not to_email:
            return False
        if not settings.SENDGRID_API_KEY:
            logger.info("SENDGRID_API_KEY not set, skipping assessment result email")
            return False

        status_text = "Passed" if data["passed"] else "Not Passed"
        cls.send_email(
            to_email,
            f"Assessment result: {data['task_title']} ({status_text})",
            "assessment_result.html",
            {
                "user_name": data.get("user_name") or data["user_id"],
                "task_title": data["task_title"],
                "score": data["score"],
                "passing_score": data["passing_score"],
                "passed": data["passed"],
                "attempt_count": data["attempt_count"],
                "feedback": data.get("feedback"),
            },
        )
        return True


def handle_assessment_result_email(data: Dict[str, Any]):
    EmailService.send_assessment_result_email(data)

event_bus.subscribe(ASSESSMENT_COMPLETED_EVENT, handle_assessment_result_email)
