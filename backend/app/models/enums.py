"""
User roles enumeration.

Defines the role types for the parcel delivery platform.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Default role for every registered account (parcel senders)
        RIDER: Granted when the user's rider application is approved
        ADMIN: Granted only through a privileged role update
    """
    USER = "user"
    RIDER = "rider"
    ADMIN = "admin"
