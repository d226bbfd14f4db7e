# Business logic services
from pickup.services.reminder_jobs import SessionReminderJob, send_session_reminders
from pickup.services.confirmations import ConfirmationRepository, InvalidStatusError, confirmation_repository
from pickup.services.sessions import (
    expand_series,
    create_session,
    join_session,
    list_upcoming_sessions,
    update_session_details,
    notify_players_of_update,
    NotHostError,
    SessionFullError,
)

__all__ = [
    'SessionReminderJob',
    'send_session_reminders',
    'ConfirmationRepository',
    'InvalidStatusError',
    'confirmation_repository',
    'expand_series',
    'create_session',
    'join_session',
    'list_upcoming_sessions',
    'update_session_details',
    'notify_players_of_update',
    'NotHostError',
    'SessionFullError',
]
