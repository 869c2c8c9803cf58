# 1. Explicit imports of every model class
from extensions import db

from .user_models import User, ReminderTimeEnum
from .promise_models import Promise, VisibilityEnum
from .invite_models import AccountabilityInvitation, AccountabilityPartner, InvitationStatusEnum

# 2. __all__ controls `from models import *`
__all__ = [
    'User',
    'ReminderTimeEnum',
    'Promise',
    'VisibilityEnum',
    'AccountabilityInvitation',
    'AccountabilityPartner',
    'InvitationStatusEnum',
]


# 3. Explicit registration so Flask-Migrate sees every table
def register_models():
    """Import all model modules (triggers SQLAlchemy registration)."""
    from . import user_models
    from . import promise_models
    from . import invite_models
