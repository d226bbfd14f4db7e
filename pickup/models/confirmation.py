from datetime import datetime
from pickup import db

STATUS_PENDING = 'pending'
STATUS_CONFIRMED = 'confirmed'
STATUS_DECLINED = 'declined'
STATUS_MAYBE = 'maybe'

VALID_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_DECLINED, STATUS_MAYBE)


class SessionConfirmation(db.Model):
    """Attendance status and reminder marker for one profile in one session.

    reminder_sent_at is written once by the reminder job and never cleared.
    """
    __tablename__ = 'session_confirmations'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('pickup_sessions.id'), nullable=False)
    profile_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    reminder_sent_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('session_id', 'profile_id', name='unique_session_confirmation'),
    )

    def __repr__(self):
        return f'<SessionConfirmation session={self.session_id} profile={self.profile_id} {self.status}>'
