"""
authz-identity - authorization identity lookups for LDAP connections.

Asks a directory server which identity it associates with an open
connection, either through a bind carrying the authorization identity
request control or through the "Who Am I?" extended operation, and reports
bind failures to registered observers.
"""

__version__ = "0.1.0"

from .core.identity import IdentityResolver, ResolutionStatus, WhoAmIResult
from .core.observers import FailureEvent, FailureObserverRegistry, LoggingFailureObserver

__all__ = [
    "IdentityResolver",
    "ResolutionStatus",
    "WhoAmIResult",
    "FailureEvent",
    "FailureObserverRegistry",
    "LoggingFailureObserver",
]
