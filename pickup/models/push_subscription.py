from datetime import datetime
from pickup import db


class PushSubscription(db.Model):
    """A browser push endpoint for a profile. One profile may have several devices."""
    __tablename__ = 'push_subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False, index=True)
    endpoint = db.Column(db.Text, unique=True, nullable=False)
    p256dh = db.Column(db.String(255), nullable=False)
    auth = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def subscription_info(self):
        """Shape expected by pywebpush."""
        return {
            'endpoint': self.endpoint,
            'keys': {
                'p256dh': self.p256dh,
                'auth': self.auth,
            },
        }

    @classmethod
    def upsert(cls, profile_id, endpoint, p256dh, auth):
        """Create or refresh a subscription, keyed by endpoint."""
        subscription = cls.query.filter_by(endpoint=endpoint).first()
        if subscription:
            subscription.profile_id = profile_id
            subscription.p256dh = p256dh
            subscription.auth = auth
        else:
            subscription = cls(profile_id=profile_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
            db.session.add(subscription)
        db.session.commit()
        return subscription

    def __repr__(self):
        return f'<PushSubscription profile={self.profile_id}>'
