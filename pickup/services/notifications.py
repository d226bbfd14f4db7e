"""
Notification channels for session reminders.

Each channel exposes deliver(message, recipient) and reports what happened
instead of raising, so one recipient's failure never stops the batch.
"""

from flask import current_app

from pickup import db
from pickup.models import PushSubscription
from pickup.services.email_service import EmailService
from pickup.services.push_service import PushService

PUSH_ICON = '/icon-192x192.png'
PUSH_BADGE = '/badge-72x72.png'


class NotificationMessage:
    """What to tell a recipient, independent of channel."""

    def __init__(self, title: str, body: str, url: str, session_id=None, action: str = None,
                 subject: str = None, template_file: str = None, params: dict = None):
        self.title = title
        self.body = body
        self.url = url
        self.session_id = session_id
        self.action = action
        # Email-only fields
        self.subject = subject or title
        self.template_file = template_file
        self.params = params or {}

    def push_payload(self) -> dict:
        return {
            'title': self.title,
            'body': self.body,
            'icon': PUSH_ICON,
            'badge': PUSH_BADGE,
            'data': {
                'url': self.url,
                'sessionId': self.session_id,
                'action': self.action,
            },
        }


class DeliveryReport:
    """Outcome of one channel's delivery to one recipient."""

    def __init__(self, channel: str):
        self.channel = channel
        self.sent = 0
        self.removed = 0
        self.errors = []

    @property
    def success(self) -> bool:
        return self.sent > 0

    def __repr__(self):
        return f'<DeliveryReport {self.channel} sent={self.sent} removed={self.removed} errors={len(self.errors)}>'


class PushChannel:
    """Delivers to every push subscription a recipient has registered."""

    name = 'push'

    def __init__(self, push_service: PushService, timeout: float = None):
        self.push_service = push_service
        self.timeout = timeout

    def deliver(self, message: NotificationMessage, recipient) -> DeliveryReport:
        report = DeliveryReport(self.name)
        subscriptions = PushSubscription.query.filter_by(profile_id=recipient.id).all()

        for subscription in subscriptions:
            result = self.push_service.send(
                subscription.subscription_info(),
                message.push_payload(),
                timeout=self.timeout,
            )

            if result['success']:
                report.sent += 1
            elif result['gone']:
                # Endpoint will never work again
                current_app.logger.warning(
                    f"Removing push subscription {subscription.id} for profile {recipient.id} "
                    f"(status {result['status_code']})"
                )
                db.session.delete(subscription)
                db.session.commit()
                report.removed += 1
            else:
                report.errors.append(f"Push error for {recipient.id}: {result['error']}")

        return report


class EmailChannel:
    """Sends the templated reminder email through Brevo."""

    name = 'email'

    def __init__(self, email_service: EmailService, timeout: float = None):
        self.email_service = email_service
        self.timeout = timeout

    def is_enabled(self) -> bool:
        return self.email_service.is_configured()

    def deliver(self, message: NotificationMessage, recipient) -> DeliveryReport:
        report = DeliveryReport(self.name)
        if not recipient.email:
            return report

        try:
            params = dict(message.params, FIRST_NAME=recipient.display_name)
            html_content = self.email_service.render(message.template_file, params)
        except OSError as e:
            report.errors.append(f"Email error for {recipient.id}: {e}")
            return report

        result = self.email_service.send_email(
            to_email=recipient.email,
            to_name=recipient.display_name,
            subject=message.subject,
            html_content=html_content,
            timeout=self.timeout,
        )

        if result['success']:
            report.sent += 1
        else:
            report.errors.append(f"Email error for {recipient.id}: {result['error']}")

        return report
