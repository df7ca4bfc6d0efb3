"""
LDAP directory client

Authenticates a user with the bind-search-bind sequence and resolves the
groups the user belongs to. One client owns one directory session, so a
client must not be shared between threads.
"""

import time
from dataclasses import dataclass

from ldap3.utils.conv import escape_filter_chars

from ldap_group_auth.config.schema import LDAPConfiguration
from ldap_group_auth.exceptions import (
    AmbiguousUserError,
    AuthStep,
    BindRejectedError,
    ClientClosedError,
    DirectoryError,
    InvalidCredentialsError,
    InvalidInputError,
    LdapAuthError,
    RebindError,
    ServiceBindError,
    UserNotFoundError,
)
from ldap_group_auth.utils.logger import get_logger
from ldap_group_auth.utils.metrics import (
    auth_attempts,
    auth_latency_seconds,
    ldap_binds,
    ldap_searches,
)

from .base import DirectoryConnection, DirectoryEntry

logger = get_logger(__name__)


@dataclass
class AuthResult:
    """Outcome of ``LDAPClient.authenticate``.

    ``user`` is filled as soon as the user entry was found, so it is also
    present when the password check or the rebind fails.
    """

    success: bool
    user: dict[str, str] | None = None
    error: LdapAuthError | None = None

    @property
    def step(self) -> AuthStep | None:
        return self.error.step if self.error else None


class LDAPClient:
    """Directory client bound to one connection and one configuration."""

    def __init__(self, connection: DirectoryConnection, cfg: LDAPConfiguration):
        self._conn = connection
        self.cfg = cfg
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close the connection. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._conn.close()
        logger.debug("Closed LDAP client", event="ldap_auth.client.closed", address=self.cfg.address)

    def __enter__(self) -> "LDAPClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientClosedError("LDAP client is closed")

    def authenticate(self, username: str, password: str) -> AuthResult:
        """Verify ``password`` for ``username``.

        Steps: service bind (when configured), user search, user bind,
        service rebind (when configured). The first failing step ends the
        sequence; its error is returned, never retried.
        """
        self._ensure_open()
        started = time.monotonic()
        result = self._authenticate(username, password)
        auth_latency_seconds.observe(time.monotonic() - started)

        if result.success:
            auth_attempts.labels(outcome="success").inc()
            logger.info(
                "LDAP authentication successful",
                event="ldap_auth.authenticate.success",
                username=username,
                dn=result.user["dn"] if result.user else None,
            )
        else:
            error = result.error
            auth_attempts.labels(outcome=error.error_code if error else "unknown").inc()
            logger.info(
                "LDAP authentication failed",
                event="ldap_auth.authenticate.failure",
                username=username,
                step=result.step.value if result.step else None,
                error_code=error.error_code if error else None,
                reason=str(error) if error else None,
            )
        return result

    def _authenticate(self, username: str, password: str) -> AuthResult:
        if not username or not password:
            return AuthResult(
                success=False,
                error=InvalidInputError("invalid user or password", step=AuthStep.VALIDATE),
            )

        try:
            self._bind_service_account(AuthStep.SERVICE_BIND)
            entry = self._find_user(username)
        except LdapAuthError as exc:
            return AuthResult(success=False, error=exc)

        user = {"dn": entry.dn}
        for attr in self.cfg.attributes:
            user[attr] = entry.get_attribute_value(attr)

        try:
            self._bind_user(entry.dn, password)
            # Restore the service identity for any further queries
            self._bind_service_account(AuthStep.REBIND)
        except LdapAuthError as exc:
            return AuthResult(success=False, user=user, error=exc)

        return AuthResult(success=True, user=user)

    def _bind_service_account(self, step: AuthStep) -> None:
        if not self.cfg.has_service_account:
            return
        try:
            self._conn.bind(self.cfg.bind_dn, self.cfg.bind_password)
        except DirectoryError as exc:
            ldap_binds.labels(identity="service", outcome="failure").inc()
            if step is AuthStep.REBIND:
                raise RebindError(
                    f"Rebind as service account {self.cfg.bind_dn} failed: {exc}",
                    details={"bind_dn": self.cfg.bind_dn},
                    step=step,
                ) from exc
            if isinstance(exc, BindRejectedError):
                raise ServiceBindError(
                    f"Service account bind as {self.cfg.bind_dn} failed: {exc}",
                    details={"bind_dn": self.cfg.bind_dn},
                    step=step,
                ) from exc
            exc.step = step
            raise
        ldap_binds.labels(identity="service", outcome="success").inc()

    def _find_user(self, username: str) -> DirectoryEntry:
        search_filter = self.cfg.user_filter % escape_filter_chars(username)
        logger.debug(
            "Searching LDAP user",
            event="ldap_auth.user_search.start",
            base_dn=self.cfg.base_dn,
            filter=search_filter,
        )
        try:
            entries = self._conn.search(self.cfg.base_dn, search_filter, self.cfg.attributes)
        except DirectoryError as exc:
            ldap_searches.labels(kind="user", outcome="failure").inc()
            exc.step = AuthStep.USER_SEARCH
            raise
        ldap_searches.labels(kind="user", outcome="success").inc()

        if not entries:
            raise UserNotFoundError(
                "User does not exist",
                details={"username": username},
                step=AuthStep.USER_SEARCH,
            )
        if len(entries) > 1:
            raise AmbiguousUserError(
                "Too many entries returned",
                details={"username": username, "count": len(entries)},
                step=AuthStep.USER_SEARCH,
            )
        return entries[0]

    def _bind_user(self, user_dn: str, password: str) -> None:
        try:
            self._conn.bind(user_dn, password)
        except BindRejectedError as exc:
            ldap_binds.labels(identity="user", outcome="failure").inc()
            raise InvalidCredentialsError(
                "invalid user or password",
                details={"dn": user_dn},
                step=AuthStep.USER_BIND,
            ) from exc
        except DirectoryError as exc:
            ldap_binds.labels(identity="user", outcome="failure").inc()
            exc.step = AuthStep.USER_BIND
            raise
        ldap_binds.labels(identity="user", outcome="success").inc()

    def get_groups_of_user(self, username: str) -> list[str]:
        """Return the group names of ``username`` in directory order.

        The name is the first value of ``cfg.group_attribute`` (``cn`` by
        default). No matching group gives an empty list.
        """
        self._ensure_open()
        search_filter = self.cfg.group_filter % escape_filter_chars(username)
        try:
            entries = self._conn.search(
                self.cfg.base_dn, search_filter, [self.cfg.group_attribute]
            )
        except DirectoryError:
            ldap_searches.labels(kind="group", outcome="failure").inc()
            raise
        ldap_searches.labels(kind="group", outcome="success").inc()

        groups = [entry.get_attribute_value(self.cfg.group_attribute) for entry in entries]
        logger.debug(
            "Resolved LDAP groups",
            event="ldap_auth.group_search.done",
            username=username,
            groups=groups,
        )
        return groups


def open_client(
    cfg: LDAPConfiguration, connection: DirectoryConnection | None = None
) -> LDAPClient:
    """Create a client for ``cfg``.

    Dials the server unless ``connection`` is given. The caller must close
    the returned client exactly once (or use it as a context manager).
    """
    if connection is None:
        from .ldap_connection import Ldap3Connection

        connection = Ldap3Connection.open(cfg)
    return LDAPClient(connection, cfg)
