from sleeptrack.models.user import User
from sleeptrack.models.auth_token import AuthToken
from sleeptrack.models.sleep import SleepEntry
from sleeptrack.models.productivity import ProductivityEntry

__all__ = [
    "User",
    "AuthToken",
    "SleepEntry",
    "ProductivityEntry",
]
