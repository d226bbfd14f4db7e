"""
Configuration handed to the session reminder job.

Everything the job needs from the environment is collected here once, so the
job itself never reads os.environ or app.config.
"""

from datetime import timedelta


class PushCredentials:
    """VAPID key pair used to sign web push requests."""

    def __init__(self, public_key: str = None, private_key: str = None, subject: str = 'mailto:admin@pickup.app'):
        self.public_key = public_key
        self.private_key = private_key
        self.subject = subject

    @property
    def is_configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    def vapid_claims(self) -> dict:
        return {'sub': self.subject}

    @classmethod
    def from_app(cls, app):
        config = app.config
        return cls(
            public_key=config.get('VAPID_PUBLIC_KEY'),
            private_key=config.get('VAPID_PRIVATE_KEY'),
            subject=config.get('VAPID_SUBJECT') or 'mailto:admin@pickup.app',
        )


class LeadTimeWindow:
    """Time-to-start range in which a session is due for a reminder (both bounds inclusive)."""

    def __init__(self, min_lead: timedelta = timedelta(hours=24), max_lead: timedelta = timedelta(hours=48)):
        if min_lead > max_lead:
            raise ValueError("Lead-time window minimum must not exceed maximum")
        self.min = min_lead
        self.max = max_lead

    def bounds(self, now):
        return now + self.min, now + self.max


class ReminderConfig:
    """
    Explicit configuration for SessionReminderJob.

    Args:
        push_credentials: PushCredentials for the push channel
        email_credentials: Brevo API key, or None to disable email
        lead_time_window: LeadTimeWindow
        auth_secret: shared secret accepted in the X-Cron-Secret header
        service_key: privileged key accepted in the Authorization header
        app_url: base URL for deep links in emails
        delivery_timeout: seconds allowed for a single push/email call
    """

    def __init__(
        self,
        push_credentials: PushCredentials = None,
        email_credentials: str = None,
        lead_time_window: LeadTimeWindow = None,
        auth_secret: str = None,
        service_key: str = None,
        app_url: str = 'http://localhost:5000',
        delivery_timeout: float = 10.0,
    ):
        self.push_credentials = push_credentials or PushCredentials()
        self.email_credentials = email_credentials or None
        self.lead_time_window = lead_time_window or LeadTimeWindow()
        self.auth_secret = auth_secret
        self.service_key = service_key
        self.app_url = app_url.rstrip('/')
        self.delivery_timeout = delivery_timeout

    @property
    def email_enabled(self) -> bool:
        return self.email_credentials is not None

    @classmethod
    def from_app(cls, app):
        """Build from a Flask app's config (populated from the environment in create_app)."""
        config = app.config
        return cls(
            push_credentials=PushCredentials.from_app(app),
            email_credentials=config.get('BREVO_API_KEY'),
            lead_time_window=LeadTimeWindow(
                min_lead=timedelta(hours=config.get('REMINDER_MIN_LEAD_HOURS', 24)),
                max_lead=timedelta(hours=config.get('REMINDER_MAX_LEAD_HOURS', 48)),
            ),
            auth_secret=config.get('CRON_SECRET'),
            service_key=config.get('SERVICE_ROLE_KEY'),
            app_url=config.get('APP_URL', 'http://localhost:5000'),
            delivery_timeout=config.get('DELIVERY_TIMEOUT_SECONDS', 10.0),
        )
