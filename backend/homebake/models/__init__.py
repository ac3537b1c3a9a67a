from .auth import User, SessionToken
from .invites import QRInvite
from .catalog import BreadType
from .production import Batch, ProductionLog
from .sales import SalesLog, RemainingBread, ShiftFeedback, ShiftReport
from .activity import Activity
from .notifications import PushSubscription, NotificationAttempt
from .security import AuditEvent

__all__ = [
    'User', 'SessionToken',
    'QRInvite',
    'BreadType',
    'Batch', 'ProductionLog',
    'SalesLog', 'RemainingBread', 'ShiftFeedback', 'ShiftReport',
    'Activity',
    'PushSubscription', 'NotificationAttempt',
    'AuditEvent',
]
