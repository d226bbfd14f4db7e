"""
Email service for sending emails via Brevo API.

This module handles all email sending functionality including:
- Brevo API integration
- Template rendering with parameter substitution

Email is optional: without an API key the service reports itself as
unconfigured and callers skip the channel.
"""

import os
import re
from flask import current_app
from markupsafe import escape
import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException


class EmailService:
    """Service for sending emails via Brevo."""

    SENDER = {"name": "Pickup", "email": "noreply@pickup.app"}

    def __init__(self, api_key: str = None):
        self.api_key = api_key
        self._api_instance = None

    def is_configured(self) -> bool:
        """Check if the API key is configured."""
        return bool(self.api_key)

    @property
    def api_instance(self):
        """Get or create Brevo API instance."""
        if self._api_instance is None:
            if not self.api_key:
                raise ValueError("Brevo API key not configured")

            configuration = sib_api_v3_sdk.Configuration()
            configuration.api_key['api-key'] = self.api_key
            self._api_instance = sib_api_v3_sdk.TransactionalEmailsApi(
                sib_api_v3_sdk.ApiClient(configuration)
            )
        return self._api_instance

    def _substitute_params(self, html_content: str, params: dict) -> str:
        """Replace {{ params.X }} placeholders with HTML-escaped values."""
        for key, value in params.items():
            pattern = r'\{\{\s*params\.' + key + r'\s*\}\}'
            html_content = re.sub(pattern, lambda _: str(escape(value)), html_content)
        return html_content

    def _read_template(self, template_file: str) -> str:
        """Read an email template file."""
        template_path = os.path.join(
            current_app.root_path, 'templates', template_file
        )
        with open(template_path, 'r', encoding='utf-8') as f:
            return f.read()

    def render(self, template_file: str, params: dict) -> str:
        return self._substitute_params(self._read_template(template_file), params)

    def send_email(
        self,
        to_email: str,
        to_name: str,
        subject: str,
        html_content: str,
        timeout: float = None
    ) -> dict:
        """
        Send an email via Brevo.

        Args:
            to_email: Recipient email address
            to_name: Recipient name
            subject: Email subject
            html_content: Rendered HTML body
            timeout: Optional request timeout in seconds

        Returns:
            dict with 'success', 'message_id', and 'error' keys
        """
        result = {
            'success': False,
            'message_id': None,
            'error': None
        }

        try:
            to = [{"email": to_email, "name": to_name}]

            send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
                sender=self.SENDER,
                to=to,
                subject=subject,
                html_content=html_content
            )

            # Send via Brevo
            kwargs = {'_request_timeout': timeout} if timeout else {}
            api_response = self.api_instance.send_transac_email(send_smtp_email, **kwargs)

            result['success'] = True
            result['message_id'] = api_response.message_id

        except ApiException as e:
            result['error'] = f"Brevo API error ({e.status}): {e.reason}"
            current_app.logger.error(f"Brevo API error sending to {to_email}: {e}")

        except Exception as e:
            result['error'] = str(e)
            current_app.logger.error(f"Email send error for {to_email}: {e}")

        return result
