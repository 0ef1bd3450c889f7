"""Exceptions raised by authz-identity."""

from typing import Optional

from ldap3.core.exceptions import LDAPException


class ExtendedOperationFailedError(LDAPException):
    """The server answered an extended operation with a non-success result code."""
    
    def __init__(self, oid: str, result_code: Optional[int], description: str = "", message: str = ""):
        self.oid = oid
        self.result_code = result_code
        self.description = description
        self.message = message
        
        text = f"Extended operation {oid} failed with result {result_code}"
        if description:
            text += f" ({description})"
        if message:
            text += f": {message}"
        super().__init__(text)
