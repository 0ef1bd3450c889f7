"""LDAP control OIDs and decoders for bind responses."""

from typing import Any, Dict, Optional, Tuple

from ldap3.core.exceptions import LDAPControlError
from pydantic import BaseModel, ConfigDict

# RFC 3829
AUTHORIZATION_IDENTITY_REQUEST_OID = "2.16.840.1.113730.3.4.16"
AUTHORIZATION_IDENTITY_RESPONSE_OID = "2.16.840.1.113730.3.4.15"

# Netscape password policy response controls
PASSWORD_EXPIRED_OID = "2.16.840.1.113730.3.4.4"
PASSWORD_EXPIRING_OID = "2.16.840.1.113730.3.4.5"

# RFC 4532
WHO_AM_I_OID = "1.3.6.1.4.1.4203.1.11.3"


class PasswordPolicyNotice(BaseModel):
    """Password state reported by the server alongside a bind response."""
    
    model_config = ConfigDict(frozen=True)
    
    expired: bool = False
    seconds_until_expiration: Optional[int] = None
    
    @property
    def has_warnings(self) -> bool:
        return self.expired or self.seconds_until_expiration is not None


def authorization_identity_request_control(criticality: bool = False) -> Tuple[str, bool, None]:
    """
    Build the authorization identity request control.
    
    The control carries no value; ldap3 accepts it in the
    ``(oid, criticality, value)`` tuple form.
    """
    return (AUTHORIZATION_IDENTITY_REQUEST_OID, criticality, None)


def get_response_control(result: Optional[Dict[str, Any]], oid: str) -> Optional[Dict[str, Any]]:
    """Return the decoded response control ``oid`` from an ldap3 result dict, if present."""
    if not result:
        return None
    controls = result.get('controls') or {}
    return controls.get(oid)


def _control_text(oid: str, control: Dict[str, Any]) -> str:
    value = control.get('value')
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode('utf-8')
        except UnicodeDecodeError as e:
            raise LDAPControlError(f"Control {oid} value is not valid UTF-8: {e}") from e
    raise LDAPControlError(f"Unexpected value type for control {oid}: {type(value).__name__}")


def decode_authorization_identity(result: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Extract the authorization identity from a bind result.
    
    Args:
        result: ldap3 result dict of the bind operation
        
    Returns:
        The authorization identity exactly as sent by the server ("" for an
        anonymous identity), or None when the server omitted the control
        
    Raises:
        LDAPControlError: If the control value cannot be decoded
    """
    control = get_response_control(result, AUTHORIZATION_IDENTITY_RESPONSE_OID)
    if control is None:
        return None
    return _control_text(AUTHORIZATION_IDENTITY_RESPONSE_OID, control)


def decode_password_policy(result: Optional[Dict[str, Any]]) -> PasswordPolicyNotice:
    """
    Decode the password expired/expiring controls from a bind result.
    
    Raises:
        LDAPControlError: If the expiring control does not hold a number of seconds
    """
    expired = get_response_control(result, PASSWORD_EXPIRED_OID) is not None
    
    seconds = None
    expiring = get_response_control(result, PASSWORD_EXPIRING_OID)
    if expiring is not None:
        text = _control_text(PASSWORD_EXPIRING_OID, expiring).strip()
        if not text.isdigit():
            raise LDAPControlError(f"Password expiring control value is not a number of seconds: {text!r}")
        seconds = int(text)
    
    return PasswordPolicyNotice(expired=expired, seconds_until_expiration=seconds)
