"""Fakes shared by the authz-identity tests."""

import socket

from ldap3.core.exceptions import LDAPBindError, LDAPException, LDAPSocketReceiveError

from authz_identity.core.controls import AUTHORIZATION_IDENTITY_RESPONSE_OID


def bind_result(identity=None, extra_controls=None):
    """Build an ldap3-style bind result dict, optionally carrying the identity control."""
    controls = {}
    if identity is not None:
        controls[AUTHORIZATION_IDENTITY_RESPONSE_OID] = {
            'description': 'Authorization Identity Response Control',
            'criticality': False,
            'value': identity if isinstance(identity, bytes) else identity.encode('utf-8'),
        }
    if extra_controls:
        controls.update(extra_controls)
    
    result = {'result': 0, 'description': 'success', 'message': '', 'type': 'bindResponse'}
    if controls:
        result['controls'] = controls
    return result


class FakeDirectoryConnection:
    """DirectoryConnection that records calls and replays canned outcomes."""
    
    def __init__(self, bind_outcome=None, supported=True, whoami_outcome=None):
        self.bind_outcome = bind_outcome if bind_outcome is not None else bind_result()
        self.supported = supported
        self.whoami_outcome = whoami_outcome
        self.bind_calls = []
        self.extended_calls = []
        self.probe_calls = []
    
    def bind_with_controls(self, bind_dn, password, controls, timeout):
        self.bind_calls.append((bind_dn, password, list(controls), timeout))
        if isinstance(self.bind_outcome, LDAPException):
            raise self.bind_outcome
        return self.bind_outcome
    
    def extended_operation(self, oid):
        self.extended_calls.append(oid)
        if isinstance(self.whoami_outcome, LDAPException):
            raise self.whoami_outcome
        return self.whoami_outcome
    
    def supports_extended_operation(self, oid):
        self.probe_calls.append(oid)
        if isinstance(self.supported, LDAPException):
            raise self.supported
        return self.supported


class RecordingObserver:
    """Failure observer that keeps every event it receives."""
    
    def __init__(self):
        self.events = []
    
    def on_operation_failed(self, event):
        self.events.append(event)


def rebind_after_receive_timeout(*args, **kwargs):
    """Raise the exception chain ldap3 produces when a rebind response times out."""
    try:
        try:
            raise socket.timeout("timed out")
        except OSError:
            raise LDAPSocketReceiveError("error receiving data: timed out")
    except LDAPSocketReceiveError:
        raise LDAPBindError("Unable to rebind as a different user, furthermore the server abruptly closed the connection")
