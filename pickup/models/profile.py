from datetime import datetime
from pickup import db


class Profile(db.Model):
    """A player."""
    __tablename__ = 'profiles'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    hosted_sessions = db.relationship('PickupSession', backref='host', lazy='dynamic')
    session_entries = db.relationship('SessionPlayer', backref='profile', lazy='dynamic')
    push_subscriptions = db.relationship('PushSubscription', backref='profile', lazy='dynamic',
                                         cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Profile {self.id} {self.first_name}>'

    @property
    def display_name(self):
        return self.first_name or 'there'
