"""
Scheduled session reminder job.

Triggered over HTTP by a cron service (see routes/jobs.py). One run:
1. Find sessions starting between now + 24h and now + 48h (inclusive).
2. For every rostered player not yet reminded for that session, send a push
   notification to each of their devices and, when Brevo is configured, an
   email with confirm/decline links.
3. Stamp the player's confirmation record as reminded, whether or not any
   delivery succeeded. A player is reminded at most once per session.

Delivery failures are collected into the result and never stop the run.
Only a failure to load the sessions fails the job.
"""

from datetime import datetime
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from pickup import db
from pickup.config import ReminderConfig
from pickup.models import PickupSession, SessionPlayer
from pickup.services.confirmations import ConfirmationRepository
from pickup.services.email_service import EmailService
from pickup.services.notifications import NotificationMessage, PushChannel, EmailChannel
from pickup.services.push_service import PushService

REMINDER_TEMPLATE = 'emails/session_reminder.html'


def format_session_date(start_time: datetime) -> str:
    """e.g. 'Saturday, Oct 24'"""
    return f"{start_time.strftime('%A, %b')} {start_time.day}"


def format_session_time(start_time: datetime) -> str:
    """e.g. '06:30 PM'"""
    return start_time.strftime('%I:%M %p')


def build_reminder_message(session: PickupSession, app_url: str) -> NotificationMessage:
    """Push payload and email params for one session's reminder."""
    session_date = format_session_date(session.start_time)
    session_time = format_session_time(session.start_time)
    session_url = f"/pickup/{session.id}"

    return NotificationMessage(
        title=f"Game Reminder: {session.title}",
        body=f"Are you playing {session_date} at {session_time}? Tap to confirm.",
        url=session_url,
        session_id=session.id,
        action='confirm_attendance',
        subject=f"Game Reminder: {session.title} on {session_date}",
        template_file=REMINDER_TEMPLATE,
        params={
            'SESSION_TITLE': session.title,
            'SESSION_DATE': session_date,
            'SESSION_TIME': session_time,
            'LOCATION': session.location or 'Location TBD',
            'SPORT_NAME': session.sport_name,
            'CONFIRM_URL': f"{app_url}{session_url}?confirm=yes",
            'DECLINE_URL': f"{app_url}{session_url}?confirm=no",
        },
    )


def new_results() -> dict:
    return {
        'sessions_processed': 0,
        'push_notifications_sent': 0,
        'emails_sent': 0,
        'confirmations_updated': 0,
        'confirmations_created': 0,
        'reminders_skipped': 0,
        'subscriptions_removed': 0,
        'errors': [],
    }


class SessionReminderJob:
    """Sends 24-48h reminders for upcoming sessions."""

    def __init__(
        self,
        config: ReminderConfig,
        push_channel: PushChannel = None,
        email_channel: EmailChannel = None,
        confirmations: ConfirmationRepository = None,
    ):
        self.config = config
        self.push_channel = push_channel or PushChannel(
            PushService(config.push_credentials),
            timeout=config.delivery_timeout,
        )
        if email_channel is None and config.email_enabled:
            email_channel = EmailChannel(
                EmailService(config.email_credentials),
                timeout=config.delivery_timeout,
            )
        self.email_channel = email_channel
        self.confirmations = confirmations or ConfirmationRepository()

    def find_due_sessions(self, now: datetime) -> list:
        """Sessions with at least one player whose start falls inside the lead-time window."""
        window_start, window_end = self.config.lead_time_window.bounds(now)
        return PickupSession.query.filter(
            PickupSession.start_time >= window_start,
            PickupSession.start_time <= window_end,
            PickupSession.players.any()
        ).order_by(PickupSession.start_time, PickupSession.id).all()

    def _deliver(self, channel, message, profile, results, counter_key):
        try:
            report = channel.deliver(message, profile)
        except Exception as e:
            db.session.rollback()
            error = f"{channel.name.capitalize()} error for {profile.id}: {e}"
            current_app.logger.error(error)
            results['errors'].append(error)
            return

        results[counter_key] += report.sent
        results['errors'].extend(report.errors)
        if channel.name == 'push':
            results['subscriptions_removed'] += report.removed

    def remind_player(self, session: PickupSession, message: NotificationMessage, entry: SessionPlayer,
                      results: dict, now: datetime):
        """Deliver and stamp one (session, player) pair, unless already reminded."""
        if not self.confirmations.is_reminder_due(session.id, entry.profile_id):
            results['reminders_skipped'] += 1
            return

        profile = entry.profile
        self._deliver(self.push_channel, message, profile, results, 'push_notifications_sent')
        if self.email_channel is not None:
            self._deliver(self.email_channel, message, profile, results, 'emails_sent')

        # Stamp regardless of delivery outcome (at-most-once)
        try:
            outcome = self.confirmations.mark_reminder_sent(session.id, entry.profile_id, now)
        except SQLAlchemyError as e:
            db.session.rollback()
            error = f"Confirmation update failed for {entry.profile_id} in session {session.id}: {e}"
            current_app.logger.error(error)
            results['errors'].append(error)
            return

        if outcome == 'created':
            results['confirmations_created'] += 1
        elif outcome == 'updated':
            results['confirmations_updated'] += 1

    def run(self, now: datetime = None) -> dict:
        """
        Run one reminder pass.

        Args:
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            dict with 'success' and either 'results' (counts and 'errors')
            or 'error' (message) when sessions could not be loaded
        """
        now = now or datetime.utcnow()

        try:
            sessions = self.find_due_sessions(now)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error fetching sessions for reminders: {e}")
            return {
                'success': False,
                'error': str(e),
            }

        current_app.logger.info(f"Found {len(sessions)} sessions needing reminders")
        if self.email_channel is None:
            current_app.logger.warning("Brevo not configured - reminder emails disabled")

        results = new_results()
        for session in sessions:
            results['sessions_processed'] += 1
            message = build_reminder_message(session, self.config.app_url)

            for entry in session.players.order_by(SessionPlayer.id).all():
                self.remind_player(session, message, entry, results, now)

        current_app.logger.info(
            f"Reminder results: {results['sessions_processed']} sessions, "
            f"{results['push_notifications_sent']} push, {results['emails_sent']} emails, "
            f"{results['reminders_skipped']} skipped, {len(results['errors'])} errors"
        )

        return {
            'success': True,
            'results': results,
        }


def send_session_reminders(config: ReminderConfig = None, now: datetime = None) -> dict:
    """Run the reminder job with configuration from the current app."""
    config = config or ReminderConfig.from_app(current_app)
    return SessionReminderJob(config).run(now=now)
