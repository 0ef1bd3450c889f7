"""Failure observers for identity operations."""

import logging
from threading import Lock
from typing import Any, List, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict

from .logging import log_identity_operation

logger = logging.getLogger(__name__)


class FailureEvent(BaseModel):
    """Snapshot of a failed directory operation, handed to every observer."""
    
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
    
    source: Any
    connection: Any
    error: Exception
    description: str
    operation: str = "bind"
    principal: Optional[str] = None


class FailureObserver(Protocol):
    """Anything interested in failed directory operations."""
    
    def on_operation_failed(self, event: FailureEvent) -> None:
        ...


class FailureObserverRegistry:
    """
    Thread-safe list of failure observers.
    
    Registrations form a multiset: the same observer may be added more than
    once and is then notified once per registration. Observers are called
    outside the lock, so they may add or remove observers while handling an
    event; such changes apply from the next notification on.
    """
    
    def __init__(self, source: Any = None, isolate_errors: bool = True):
        """
        Initialize the registry.
        
        Args:
            source: Object reported as the event source (defaults to the registry)
            isolate_errors: Log observer exceptions and keep notifying the
                remaining observers instead of propagating them
        """
        self._source = source if source is not None else self
        self._isolate_errors = isolate_errors
        self._observers: List[FailureObserver] = []
        self._lock = Lock()
    
    def add_observer(self, observer: Optional[FailureObserver]) -> None:
        """Register ``observer``. None is ignored."""
        if observer is None:
            return
        with self._lock:
            self._observers.append(observer)
    
    def remove_observer(self, observer: Optional[FailureObserver]) -> None:
        """Remove one registration of ``observer``. None and unknown observers are ignored."""
        if observer is None:
            return
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)
    
    def observers(self) -> Tuple[FailureObserver, ...]:
        """Snapshot of the current registrations, in registration order."""
        with self._lock:
            return tuple(self._observers)
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)
    
    def notify_failure(self, connection: Any, error: Exception,
                       operation: str = "bind", principal: Optional[str] = None) -> int:
        """
        Deliver a FailureEvent to every registered observer.
        
        Args:
            connection: Connection the failed operation ran on
            error: The protocol failure
            operation: Name of the failed step
            principal: Bind DN involved, if any
            
        Returns:
            Number of observers notified
        """
        snapshot = self.observers()
        if not snapshot:
            return 0
        
        event = FailureEvent(
            source=self._source,
            connection=connection,
            error=error,
            description=str(error) or type(error).__name__,
            operation=operation,
            principal=principal,
        )
        
        for observer in snapshot:
            try:
                observer.on_operation_failed(event)
            except Exception:
                if not self._isolate_errors:
                    raise
                logger.exception(f"Failure observer {observer!r} raised while handling {operation} failure")
        
        return len(snapshot)


class LoggingFailureObserver:
    """Observer that writes every failure to the log and the audit trail."""
    
    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.WARNING):
        self.logger = logger or logging.getLogger(__name__)
        self.level = level
    
    def on_operation_failed(self, event: FailureEvent) -> None:
        self.logger.log(
            self.level,
            f"LDAP {event.operation} failed on {event.connection!r}: {event.description}"
        )
        log_identity_operation(event.operation, event.principal or "", False, event.description)
