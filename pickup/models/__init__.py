# Import all models here so they're registered with SQLAlchemy
from pickup.models.sport import Sport
from pickup.models.profile import Profile
from pickup.models.session import PickupSession
from pickup.models.session_player import SessionPlayer
from pickup.models.confirmation import SessionConfirmation
from pickup.models.push_subscription import PushSubscription

__all__ = ['Sport', 'Profile', 'PickupSession', 'SessionPlayer', 'SessionConfirmation', 'PushSubscription']
