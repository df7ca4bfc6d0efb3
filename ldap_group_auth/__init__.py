"""Authenticate users against an LDAP directory and check group allow-lists."""

from .auth import AuthResult, LDAPClient, open_client, user_in_group
from .config import LDAPConfiguration

__version__ = "1.0.0"

__all__ = [
    "AuthResult",
    "LDAPClient",
    "LDAPConfiguration",
    "open_client",
    "user_in_group",
]
