"""Resend implementation of EmailProvider.

Links carry the raw token as a query parameter; the token itself is never
logged.
"""

import os
from typing import Optional
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class ResendMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_url: str = "http://localhost:3000",
        app_name: str = "Bucci Products",
        reset_ttl_minutes: int = 60,
        verify_ttl_hours: int = 24,
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_url = app_url.rstrip("/")
        self._app_name = app_name
        self._reset_ttl_minutes = reset_ttl_minutes
        self._verify_ttl_hours = verify_ttl_hours
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _link(self, path: str, token: str) -> str:
        return f"{self._app_url}{path}?{urlencode({'token': token})}"

    async def _send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        if not self._settings.resend_api_key:
            log.error("email_send_failed", reason="api_key_not_configured")
            return False

        payload: dict = {
            "from": self._settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            payload["text"] = text_body

        headers = {
            "Authorization": f"Bearer {self._settings.resend_api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.post(
                _RESEND_API_URL, json=payload, headers=headers
            )
            if response.status_code in (200, 201, 202):
                log.info("email_sent_success", subject=subject)
                return True
            log.error(
                "email_sent_failed",
                subject=subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False
        except Exception as e:
            log.error(
                "email_send_error",
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def send_verification_email(
        self, email: str, user_name: Optional[str], token: str
    ) -> bool:
        subject = f"Verify Your Email - {self._app_name}"
        link = self._link("/auth/verify-email", token)
        html_body = self._jinja.get_template("verification.html").render(
            verify_link=link,
            user_name=user_name,
            app_name=self._app_name,
            ttl_hours=self._verify_ttl_hours,
        )
        text_body = (
            f"Verify Your Email - {self._app_name}\n\n"
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"Confirm your email address by opening this link:\n{link}\n\n"
            f"This link expires in {self._verify_ttl_hours} hours."
        )
        return await self._send(email, subject, html_body, text_body)

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], token: str
    ) -> bool:
        subject = f"Reset Your Password - {self._app_name}"
        link = self._link("/auth/reset-password", token)
        html_body = self._jinja.get_template("password_reset.html").render(
            reset_link=link,
            user_name=user_name,
            app_name=self._app_name,
            ttl_minutes=self._reset_ttl_minutes,
        )
        text_body = (
            f"Reset Your Password - {self._app_name}\n\n"
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"We received a request to reset your password. Open this link to "
            f"choose a new one:\n{link}\n\n"
            f"This link expires in {self._reset_ttl_minutes} minutes. "
            f"If you didn't request this, you can ignore this email."
        )
        return await self._send(email, subject, html_body, text_body)
