"""Directory connection interface and its ldap3 adapter."""

import logging
import socket
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

import ldap3
from ldap3 import BASE, SIMPLE
from ldap3.core.exceptions import LDAPBindError, LDAPException, LDAPExtensionError, LDAPResponseTimeoutError

from .errors import ExtendedOperationFailedError

logger = logging.getLogger(__name__)

RESULT_SUCCESS = 0

Control = Tuple[str, bool, Any]


def _caused_by_timeout(error: BaseException) -> bool:
    """Whether a socket timeout is anywhere in the chain of ``error``."""
    seen = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, (socket.timeout, TimeoutError)):
            return True
        seen.add(id(error))
        error = error.__cause__ or error.__context__
    return False


class DirectoryConnection(Protocol):
    """Operations the identity resolver needs from an open directory connection."""
    
    def bind_with_controls(self, bind_dn: str, password: str,
                           controls: Sequence[Control], timeout: float) -> Dict[str, Any]:
        """Bind, returning the result dict. Raises LDAPException on failure."""
        ...
    
    def extended_operation(self, oid: str) -> Optional[str]:
        """Run an extended operation, returning its response value. Raises LDAPException on failure."""
        ...
    
    def supports_extended_operation(self, oid: str) -> bool:
        """Whether the server advertises the extended operation ``oid``."""
        ...


class Ldap3Connection:
    """
    DirectoryConnection over an existing ``ldap3.Connection``.
    
    The wrapped connection stays owned by the caller: it is never opened,
    closed or replaced here. Works with both the plain sync strategies, which
    leave results on ``connection.result``, and the thread-safe ones, which
    return ``(status, result, response, request)`` tuples.
    """
    
    def __init__(self, connection: ldap3.Connection):
        """
        Initialize the adapter.
        
        Args:
            connection: Open ldap3 connection
        """
        self.connection = connection
    
    def _unpack(self, outcome: Any) -> Tuple[bool, Optional[Dict[str, Any]], Optional[List[Dict[str, Any]]]]:
        if isinstance(outcome, tuple):
            return bool(outcome[0]), outcome[1], outcome[2]
        return bool(outcome), self.connection.result, self.connection.response
    
    @contextmanager
    def _response_timeout(self, timeout: float) -> Iterator[None]:
        sock = getattr(self.connection, 'socket', None)
        if not isinstance(sock, socket.socket):
            yield
            return
        
        previous = sock.gettimeout()
        sock.settimeout(timeout)
        try:
            yield
        finally:
            try:
                sock.settimeout(previous)
            except OSError as e:
                # the bind may leave the socket closed
                logger.debug(f"Could not restore socket timeout: {e}")
    
    def bind_with_controls(self, bind_dn: str, password: str,
                           controls: Sequence[Control], timeout: float) -> Dict[str, Any]:
        """
        Rebind the connection as ``bind_dn`` with the given request controls.
        
        Args:
            bind_dn: Distinguished name to bind as
            password: Password of ``bind_dn``
            controls: Request controls as ``(oid, criticality, value)`` tuples
            timeout: Seconds to wait for the bind response
            
        Returns:
            ldap3 result dict of the bind, including any response controls
            
        Raises:
            LDAPResponseTimeoutError: If no response arrives within ``timeout``.
                ldap3 closes the connection when a receive times out, so the
                caller has to reopen it before using it again
            LDAPException: If the bind fails
        """
        logger.debug(f"Binding as {bind_dn} with {len(controls)} request control(s), timeout={timeout}s")
        
        with self._response_timeout(timeout):
            try:
                outcome = self.connection.rebind(
                    user=bind_dn,
                    password=password,
                    authentication=SIMPLE,
                    read_server_info=False,
                    controls=list(controls)
                )
            except (LDAPException, socket.timeout) as e:
                if _caused_by_timeout(e):
                    raise LDAPResponseTimeoutError(f"No bind response within {timeout}s, connection closed") from e
                raise
        
        status, result, _ = self._unpack(outcome)
        if not status:
            description = (result or {}).get('description', 'unknown error')
            raise LDAPBindError(f"Bind as {bind_dn} failed: {description}")
        
        return result or {}
    
    def extended_operation(self, oid: str) -> Optional[str]:
        """
        Run a value-less extended operation.
        
        Args:
            oid: Request name of the extended operation
            
        Returns:
            The decoded response value, or None if the server sent none
            
        Raises:
            ExtendedOperationFailedError: If the server returns a non-success code
            LDAPExtensionError: If the response value is not valid UTF-8
            LDAPException: On transport failures
        """
        logger.debug(f"Sending extended operation {oid}")
        
        _, result, _ = self._unpack(self.connection.extended(oid))
        if not result:
            raise LDAPExtensionError(f"No response to extended operation {oid}")
        
        if result.get('result') != RESULT_SUCCESS:
            raise ExtendedOperationFailedError(
                oid,
                result.get('result'),
                result.get('description', ''),
                result.get('message', '')
            )
        
        value = result.get('responseValue')
        if not value:
            return None
        if isinstance(value, (bytes, bytearray)):
            try:
                return bytes(value).decode('utf-8')
            except UnicodeDecodeError as e:
                raise LDAPExtensionError(f"Extended operation {oid} response is not valid UTF-8: {e}") from e
        return str(value)
    
    def supports_extended_operation(self, oid: str) -> bool:
        """
        Check whether the server advertises the extended operation ``oid``.
        
        Uses the server info ldap3 already loaded when available, otherwise
        reads ``supportedExtension`` from the root DSE.
        """
        info = self.connection.server.info
        if info is not None and info.supported_extensions is not None:
            return any(extension[0] == oid for extension in info.supported_extensions)
        
        return oid in self._root_dse_extensions()
    
    def _root_dse_extensions(self) -> List[str]:
        logger.debug("Server info not loaded, reading supportedExtension from root DSE")
        
        outcome = self.connection.search(
            search_base='',
            search_filter='(objectClass=*)',
            search_scope=BASE,
            attributes=['supportedExtension']
        )
        status, result, response = self._unpack(outcome)
        if not status:
            raise LDAPExtensionError(f"Unable to read root DSE: {result}")
        
        extensions = []
        for entry in response or []:
            if entry.get('type', 'searchResEntry') != 'searchResEntry':
                continue
            values = entry.get('attributes', {}).get('supportedExtension', [])
            if isinstance(values, str):
                values = [values]
            extensions.extend(str(value) for value in values)
        
        return extensions
