"""
Attendance confirmations and the reminder-sent marker.

Status moves freely between pending, confirmed, declined and maybe at the
participant's request. reminder_sent_at is separate: the reminder job stamps
it once and nothing clears it, which is what keeps reminders from repeating.
"""

from datetime import datetime
from sqlalchemy.exc import IntegrityError

from pickup import db
from pickup.models import SessionConfirmation
from pickup.models.confirmation import STATUS_PENDING, STATUS_CONFIRMED, VALID_STATUSES


class InvalidStatusError(ValueError):
    """Raised for a status outside pending/confirmed/declined/maybe."""


class ConfirmationRepository:
    """Reads and writes SessionConfirmation rows for (session, profile) pairs."""

    def get(self, session_id, profile_id):
        return SessionConfirmation.query.filter_by(
            session_id=session_id,
            profile_id=profile_id
        ).first()

    def get_or_create(self, session_id, profile_id) -> SessionConfirmation:
        """Return the existing record, or a new pending one added to the session (not committed)."""
        confirmation = self.get(session_id, profile_id)
        if confirmation is None:
            confirmation = SessionConfirmation(
                session_id=session_id,
                profile_id=profile_id,
                status=STATUS_PENDING
            )
            db.session.add(confirmation)
        return confirmation

    def get_state(self, session_id, profile_id) -> dict:
        """Current status and timestamps; a missing record reads as pending."""
        confirmation = self.get(session_id, profile_id)
        if confirmation is None:
            return {
                'status': STATUS_PENDING,
                'confirmed_at': None,
                'reminder_sent_at': None,
            }
        return {
            'status': confirmation.status,
            'confirmed_at': confirmation.confirmed_at,
            'reminder_sent_at': confirmation.reminder_sent_at,
        }

    def set_status(self, session_id, profile_id, status: str, now: datetime = None) -> SessionConfirmation:
        """Participant-driven status change. Only 'confirmed' carries a confirmation time."""
        if status not in VALID_STATUSES:
            raise InvalidStatusError(
                f"Invalid status. Must be: {', '.join(VALID_STATUSES)}"
            )

        confirmation = self.get_or_create(session_id, profile_id)
        confirmation.status = status
        confirmation.confirmed_at = (now or datetime.utcnow()) if status == STATUS_CONFIRMED else None
        db.session.commit()
        return confirmation

    def is_reminder_due(self, session_id, profile_id) -> bool:
        """True unless a reminder has already been stamped for this pair."""
        confirmation = self.get(session_id, profile_id)
        return confirmation is None or confirmation.reminder_sent_at is None

    def mark_reminder_sent(self, session_id, profile_id, now: datetime = None):
        """
        Stamp reminder_sent_at once for this pair.

        Returns:
            'updated' if an existing record was stamped, 'created' if a new
            pending record was inserted with the stamp, None if the pair was
            already stamped.
        """
        now = now or datetime.utcnow()

        # Conditional update: only a row with no stamp yet can be claimed
        updated = SessionConfirmation.query.filter(
            SessionConfirmation.session_id == session_id,
            SessionConfirmation.profile_id == profile_id,
            SessionConfirmation.reminder_sent_at.is_(None)
        ).update({'reminder_sent_at': now}, synchronize_session='fetch')

        if updated:
            db.session.commit()
            return 'updated'

        if self.get(session_id, profile_id) is not None:
            return None

        try:
            db.session.add(SessionConfirmation(
                session_id=session_id,
                profile_id=profile_id,
                status=STATUS_PENDING,
                reminder_sent_at=now
            ))
            db.session.commit()
            return 'created'
        except IntegrityError:
            # Another writer inserted the row first
            db.session.rollback()
            return self.mark_reminder_sent(session_id, profile_id, now)


confirmation_repository = ConfirmationRepository()
