# ldap_group_auth/exceptions.py
"""
Exceptions raised or returned by the directory client.

Every failure of the authentication sequence has its own type so callers
can tell a bad password from an unreachable server without parsing
messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class AuthStep(str, Enum):
    """Steps of the bind-search-bind sequence."""

    VALIDATE = "validate"
    SERVICE_BIND = "service_bind"
    USER_SEARCH = "user_search"
    USER_BIND = "user_bind"
    REBIND = "rebind"


class LdapAuthError(Exception):
    """Base exception for all ldap_group_auth errors."""

    error_code = "ldap_auth_error"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        step: AuthStep | None = None,
    ):
        self.message = message
        self.details = details or {}
        self.step = step
        super().__init__(message)


class ConfigurationError(LdapAuthError):
    """Raised when the configuration cannot be loaded or validated."""

    error_code = "config_error"


class ClientClosedError(LdapAuthError):
    """Raised when a client is used after its connection was closed."""

    error_code = "client_closed"


class InvalidInputError(LdapAuthError):
    """Empty username or password; raised before any network call."""

    error_code = "invalid_input"


# Directory-level errors, raised by DirectoryConnection implementations
class DirectoryError(LdapAuthError):
    """Base class for failures reported by the directory connection."""

    error_code = "directory_error"


class DirectoryConnectionError(DirectoryError):
    """Transport failure: connect, TLS negotiation, or a dropped socket."""

    error_code = "connection_error"


class BindRejectedError(DirectoryError):
    """The server answered a bind request with a non-success result."""

    error_code = "bind_rejected"


class DirectorySearchError(DirectoryError):
    """The server rejected a search (bad filter, bad base, ...)."""

    error_code = "search_error"


# Authentication sequence errors
class ServiceBindError(LdapAuthError):
    """The service account could not bind before the user lookup."""

    error_code = "service_bind_failed"


class UserNotFoundError(LdapAuthError):
    error_code = "user_not_found"


class AmbiguousUserError(LdapAuthError):
    error_code = "ambiguous_user"


class InvalidCredentialsError(LdapAuthError):
    """The user's DN was found but the password was refused."""

    error_code = "invalid_credentials"


class RebindError(LdapAuthError):
    """Re-binding as the service account after verification failed."""

    error_code = "rebind_failed"
