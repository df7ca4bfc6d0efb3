# Package: ldap_group_auth.auth
from __future__ import annotations

from .base import DirectoryConnection, DirectoryEntry
from .groups import user_in_group
from .ldap_client import AuthResult, LDAPClient, open_client

__all__ = [
    "AuthResult",
    "DirectoryConnection",
    "DirectoryEntry",
    "LDAPClient",
    "open_client",
    "user_in_group",
]
