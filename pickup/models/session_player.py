from datetime import datetime
from pickup import db

ROLE_PLAYER = 'PLAYER'
ROLE_OWNER = 'OWNER'


class SessionPlayer(db.Model):
    """Roster entry: a profile signed up for a session."""
    __tablename__ = 'pickup_session_players'

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('pickup_sessions.id'), nullable=False)
    profile_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    role = db.Column(db.String(20), default=ROLE_PLAYER)  # PLAYER, OWNER
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Unique constraint: one roster entry per profile per session
    __table_args__ = (
        db.UniqueConstraint('session_id', 'profile_id', name='unique_session_player'),
    )

    def __repr__(self):
        return f'<SessionPlayer session={self.session_id} profile={self.profile_id} {self.role}>'
