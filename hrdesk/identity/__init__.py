"""
Client-side identity: auth sessions, profile snapshots and the resolver
that keeps them in step.
"""

from .profile import ProfileSnapshot
from .resolver import IdentityResolver, IdentitySnapshot, SignOutError
from .session import AuthSession, Principal

__all__ = [
    "AuthSession",
    "IdentityResolver",
    "IdentitySnapshot",
    "Principal",
    "ProfileSnapshot",
    "SignOutError",
]
