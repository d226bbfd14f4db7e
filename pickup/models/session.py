from datetime import datetime
from pickup import db


class PickupSession(db.Model):
    """One scheduled occurrence of a pickup game."""
    __tablename__ = 'pickup_sessions'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    sport_id = db.Column(db.Integer, db.ForeignKey('sports.id'), nullable=True)
    host_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=True)
    start_time = db.Column(db.DateTime, nullable=False, index=True)  # naive UTC
    location = db.Column(db.String(255), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    player_limit = db.Column(db.Integer, nullable=True)  # NULL = unlimited
    fee = db.Column(db.Numeric(8, 2), default=0)
    description = db.Column(db.Text, nullable=True)
    is_recurring = db.Column(db.Boolean, default=False)
    series_id = db.Column(db.String(36), nullable=True, index=True)  # shared by every week of a series
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    players = db.relationship('SessionPlayer', backref='session', lazy='dynamic', cascade='all, delete-orphan')
    confirmations = db.relationship('SessionConfirmation', backref='session', lazy='dynamic',
                                    cascade='all, delete-orphan')

    @property
    def sport_name(self):
        return self.sport.name if self.sport else "Sport"

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'sport': {'id': self.sport.id, 'name': self.sport.name} if self.sport else None,
            'hostId': self.host_id,
            'startTime': self.start_time.isoformat() if self.start_time else None,
            'location': self.location,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'playerLimit': self.player_limit,
            'fee': str(self.fee) if self.fee is not None else None,
            'description': self.description,
            'isRecurring': bool(self.is_recurring),
            'seriesId': self.series_id,
            'recurringDay': self.start_time.strftime('%A') if self.is_recurring and self.start_time else None,
            '_count': {'players': self.players.count()},
        }

    def __repr__(self):
        return f'<PickupSession {self.id} {self.start_time}>'
