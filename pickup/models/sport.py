from pickup import db


class Sport(db.Model):
    """A sport that sessions can be played in (soccer, basketball, ...)."""
    __tablename__ = 'sports'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)

    sessions = db.relationship('PickupSession', backref='sport', lazy='dynamic')

    def __repr__(self):
        return f'<Sport {self.name}>'
