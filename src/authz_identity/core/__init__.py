"""Core functionality for authz-identity."""

from .connection import DirectoryConnection, Ldap3Connection
from .errors import ExtendedOperationFailedError
from .identity import IdentityResolver, ResolutionStatus, WhoAmIResult
from .logging import setup_logging
from .observers import FailureEvent, FailureObserver, FailureObserverRegistry, LoggingFailureObserver

__all__ = [
    "DirectoryConnection",
    "Ldap3Connection",
    "ExtendedOperationFailedError",
    "IdentityResolver",
    "ResolutionStatus",
    "WhoAmIResult",
    "setup_logging",
    "FailureEvent",
    "FailureObserver",
    "FailureObserverRegistry",
    "LoggingFailureObserver",
]
