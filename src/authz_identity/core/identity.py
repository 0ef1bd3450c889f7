"""
Authorization identity resolution.

Two ways of asking a directory server which identity it associates with a
connection:

- ``resolve_via_bind`` rebinds with the authorization identity request
  control (RFC 3829) and reads the identity from the bind response. It
  changes the connection's authentication state. Failures are reported to
  registered FailureObservers and the call returns None.
- ``resolve_via_whoami`` sends the "Who Am I?" extended operation (RFC 4532)
  on the connection as currently bound. Failures come back in the returned
  WhoAmIResult and are never sent to observers.

Callers must serialize identity queries on a single connection. A bind that
times out leaves the ldap3 connection closed; reopening it is up to the
caller.
"""

import logging
from datetime import timedelta
from enum import Enum
from typing import Any, Optional, Tuple, Union

import ldap3
from ldap3.core.exceptions import LDAPControlError, LDAPException
from pydantic import BaseModel, ConfigDict

from ..config.models import ResolverConfig
from .connection import DirectoryConnection, Ldap3Connection
from .controls import (
    WHO_AM_I_OID,
    authorization_identity_request_control,
    decode_authorization_identity,
    decode_password_policy,
)
from .logging import log_identity_operation
from .observers import FailureObserver, FailureObserverRegistry

logger = logging.getLogger(__name__)


class ResolutionStatus(str, Enum):
    """Outcome of a Who Am I? query."""
    
    SUCCESS = "success"
    NOT_SUPPORTED = "not_supported"
    FAILED = "failed"


class WhoAmIResult(BaseModel):
    """Result of ``IdentityResolver.resolve_via_whoami``."""
    
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
    
    status: ResolutionStatus
    identity: Optional[str] = None
    error: Optional[Exception] = None
    
    @property
    def ok(self) -> bool:
        return self.status != ResolutionStatus.FAILED
    
    def unwrap(self) -> str:
        """
        Return the identity, raising the carried error for failed queries.
        
        Returns:
            The authorization identity; "" when the server does not support
            the operation or asserts no identity
        """
        if self.status == ResolutionStatus.FAILED:
            raise self.error
        return self.identity or ""


class IdentityResolver:
    """
    Resolves the authorization identity associated with one connection.
    
    The connection is borrowed: the resolver never opens, closes or replaces
    it. A raw ``ldap3.Connection`` is wrapped in an Ldap3Connection; any other
    object must implement DirectoryConnection.
    
    Usage:
        resolver = IdentityResolver(connection)
        resolver.add_observer(LoggingFailureObserver())
        identity = resolver.resolve_via_bind(bind_dn, password, timeout=5)
    """
    
    def __init__(self,
                 connection: Union[ldap3.Connection, DirectoryConnection],
                 config: Optional[ResolverConfig] = None):
        """
        Initialize the resolver.
        
        Args:
            connection: Open directory connection, owned by the caller
            config: Resolver configuration
        """
        if connection is None:
            raise ValueError("connection is required")
        
        self._connection = connection
        if isinstance(connection, ldap3.Connection):
            self._directory: DirectoryConnection = Ldap3Connection(connection)
        else:
            self._directory = connection
        
        self.config = config or ResolverConfig()
        self._registry = FailureObserverRegistry(
            source=self,
            isolate_errors=self.config.isolate_observer_errors
        )
    
    @property
    def connection(self) -> Any:
        """The connection passed at construction."""
        return self._connection
    
    def add_observer(self, observer: Optional[FailureObserver]) -> None:
        self._registry.add_observer(observer)
    
    def remove_observer(self, observer: Optional[FailureObserver]) -> None:
        self._registry.remove_observer(observer)
    
    def observers(self) -> Tuple[FailureObserver, ...]:
        return self._registry.observers()
    
    def notify_failure(self, connection: Any, error: Exception,
                       operation: str = "bind", principal: Optional[str] = None) -> int:
        return self._registry.notify_failure(connection, error, operation, principal)
    
    def _response_timeout(self, timeout: Union[float, timedelta, None]) -> float:
        if timeout is None:
            return self.config.response_timeout
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        return float(timeout)
    
    def resolve_via_bind(self, bind_dn: str, password: str,
                         timeout: Union[float, timedelta, None] = None) -> Optional[str]:
        """
        Bind with the authorization identity request control and return the identity.
        
        The connection is bound as ``bind_dn`` afterwards; its previous
        authentication state is lost.
        
        Args:
            bind_dn: Distinguished name to bind as
            password: Password of ``bind_dn``
            timeout: Seconds (or timedelta) to wait for the bind response;
                defaults to ``config.response_timeout``
            
        Returns:
            The authorization identity exactly as sent by the server, or None
            if the bind failed (observers are notified) or the server did not
            return the response control (observers are not notified)
            
        Raises:
            ValueError: If an argument is missing or the timeout is not positive
        """
        if bind_dn is None:
            raise ValueError("bind_dn is required")
        if password is None:
            raise ValueError("password is required")
        response_timeout = self._response_timeout(timeout)
        
        try:
            result = self._directory.bind_with_controls(
                bind_dn,
                password,
                [authorization_identity_request_control()],
                response_timeout
            )
        except LDAPException as e:
            logger.warning(f"Bind as {bind_dn} failed: {e}")
            log_identity_operation("bind", bind_dn, False, str(e))
            self._registry.notify_failure(self._connection, e, "bind", bind_dn)
            return None
        
        if self.config.log_password_warnings:
            self._log_password_policy(bind_dn, result)
        
        try:
            identity = decode_authorization_identity(result)
        except LDAPControlError as e:
            logger.warning(f"Unreadable authorization identity control for {bind_dn}: {e}")
            self._registry.notify_failure(self._connection, e, "authorization_identity_control", bind_dn)
            return None
        
        if identity is None:
            logger.info(f"Server returned no authorization identity control for {bind_dn}")
            return None
        
        log_identity_operation("bind", bind_dn, True, f"authorization identity {identity!r}")
        return identity
    
    def _log_password_policy(self, bind_dn: str, result: Any) -> None:
        try:
            notice = decode_password_policy(result)
        except LDAPControlError as e:
            logger.warning(f"Ignoring malformed password policy control for {bind_dn}: {e}")
            return
        
        if notice.expired:
            logger.warning(f"Password for {bind_dn} has expired and must be changed before other operations")
        if notice.seconds_until_expiration is not None:
            logger.warning(f"Password for {bind_dn} expires in {notice.seconds_until_expiration} seconds")
    
    def resolve_via_whoami(self) -> WhoAmIResult:
        """
        Ask the server for the connection's identity with the Who Am I? extended operation.
        
        Does not bind; the identity is that of the connection's current
        authentication state.
        
        Returns:
            WhoAmIResult with status SUCCESS and the identity ("" if the
            server asserts none), NOT_SUPPORTED and identity "" if the server
            does not advertise the operation, or FAILED with the error
        """
        try:
            if not self._directory.supports_extended_operation(WHO_AM_I_OID):
                logger.info("Server does not support the Who Am I? extended operation")
                return WhoAmIResult(status=ResolutionStatus.NOT_SUPPORTED, identity="")
            
            identity = self._directory.extended_operation(WHO_AM_I_OID)
            
        except LDAPException as e:
            logger.error(f"Who Am I? extended operation failed: {e}")
            log_identity_operation("whoami", "", False, str(e))
            return WhoAmIResult(status=ResolutionStatus.FAILED, error=e)
        
        identity = identity or ""
        log_identity_operation("whoami", identity, True)
        return WhoAmIResult(status=ResolutionStatus.SUCCESS, identity=identity)
    
    def __repr__(self) -> str:
        return f"IdentityResolver(connection={self._connection!r}, observers={len(self._registry)})"
