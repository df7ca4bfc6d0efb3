"""
ldap3-backed directory connection
"""

import ssl
from collections.abc import Sequence
from typing import Any

import ldap3
from ldap3.core.exceptions import (
    LDAPCommunicationError,
    LDAPException,
    LDAPSSLConfigurationError,
    LDAPStartTLSError,
)

from ldap_group_auth.config.schema import LDAPConfiguration
from ldap_group_auth.exceptions import (
    BindRejectedError,
    ConfigurationError,
    DirectoryConnectionError,
    DirectorySearchError,
)
from ldap_group_auth.utils.logger import get_logger

from .base import DirectoryConnection, DirectoryEntry

logger = get_logger(__name__)

_TRANSPORT_ERRORS = (LDAPCommunicationError, LDAPStartTLSError)
_RESULT_SUCCESS = 0


def build_tls(cfg: LDAPConfiguration) -> ldap3.Tls:
    """Translate the TLS settings of ``cfg`` into an ``ldap3.Tls``."""
    tls_kwargs: dict[str, Any] = {
        "validate": ssl.CERT_NONE if cfg.insecure_skip_verify else ssl.CERT_REQUIRED,
    }
    if cfg.ca_certs_file and not cfg.insecure_skip_verify:
        tls_kwargs["ca_certs_file"] = cfg.ca_certs_file
    if cfg.server_name and not cfg.insecure_skip_verify:
        tls_kwargs["valid_names"] = [cfg.server_name]
    if cfg.client_cert_file:
        tls_kwargs["local_certificate_file"] = cfg.client_cert_file
        tls_kwargs["local_private_key_file"] = cfg.client_key_file
    try:
        return ldap3.Tls(**tls_kwargs)
    except LDAPSSLConfigurationError as exc:
        raise ConfigurationError(f"Invalid TLS configuration: {exc}") from exc


def _as_strings(value: Any) -> list[str]:
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    return [
        item.decode("utf-8", "replace") if isinstance(item, bytes) else str(item)
        for item in items
    ]


def _result_message(result: dict[str, Any] | None) -> str:
    result = result or {}
    parts = [str(result.get("description") or "").strip(), str(result.get("message") or "").strip()]
    return ": ".join(p for p in parts if p) or "unknown error"


class Ldap3Connection(DirectoryConnection):
    """DirectoryConnection over a single ``ldap3.Connection``.

    The wrapped connection must be created with ``raise_exceptions=False``
    so that refused binds come back as results, not exceptions.
    """

    def __init__(self, connection: ldap3.Connection):
        self._conn = connection

    @classmethod
    def open(cls, cfg: LDAPConfiguration) -> "Ldap3Connection":
        """Dial ``cfg.host:cfg.port`` and optionally upgrade with StartTLS."""
        server = ldap3.Server(
            cfg.host,
            port=cfg.port,
            use_ssl=cfg.use_ssl,
            tls=build_tls(cfg) if cfg.tls_enabled else None,
            get_info=ldap3.NONE,
            connect_timeout=cfg.connect_timeout,
        )
        conn = ldap3.Connection(
            server,
            auto_bind=ldap3.AUTO_BIND_NONE,
            raise_exceptions=False,
            read_only=True,
        )
        try:
            conn.open(read_server_info=False)
            if cfg.use_tls and not conn.start_tls(read_server_info=False):
                raise DirectoryConnectionError(
                    f"StartTLS with {cfg.address} failed: {_result_message(conn.result)}",
                    details={"address": cfg.address},
                )
        except LDAPException as exc:
            cls._discard(conn)
            logger.warning(
                "Unable to connect to LDAP server",
                event="ldap_auth.connection.open_failed",
                address=cfg.address,
                use_tls=cfg.use_tls,
                use_ssl=cfg.use_ssl,
                error=str(exc),
            )
            raise DirectoryConnectionError(
                f"Unable to connect to LDAP server {cfg.address}: {exc}",
                details={"address": cfg.address},
            ) from exc
        except DirectoryConnectionError:
            cls._discard(conn)
            raise

        logger.debug(
            "Connected to LDAP server",
            event="ldap_auth.connection.opened",
            address=cfg.address,
            use_tls=cfg.use_tls,
            use_ssl=cfg.use_ssl,
        )
        return cls(conn)

    @staticmethod
    def _discard(conn: ldap3.Connection) -> None:
        try:
            conn.unbind()
        except LDAPException as exc:
            logger.debug("Ignoring error while discarding connection", error=str(exc))

    def bind(self, dn: str, password: str) -> None:
        self._conn.user = dn
        self._conn.password = password
        self._conn.authentication = ldap3.SIMPLE
        try:
            ok = self._conn.bind(read_server_info=False)
        except _TRANSPORT_ERRORS as exc:
            raise DirectoryConnectionError(f"Bind as {dn} failed: {exc}") from exc
        except LDAPException as exc:
            raise BindRejectedError(f"Bind as {dn} failed: {exc}", details={"dn": dn}) from exc
        if not ok:
            result = dict(self._conn.result or {})
            raise BindRejectedError(
                f"Bind as {dn} rejected: {_result_message(result)}",
                details={"dn": dn, "result": result.get("result")},
            )

    def search(
        self, base_dn: str, search_filter: str, attributes: Sequence[str]
    ) -> list[DirectoryEntry]:
        try:
            self._conn.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=ldap3.SUBTREE,
                dereference_aliases=ldap3.DEREF_NEVER,
                attributes=list(attributes) or None,
                size_limit=0,
                time_limit=0,
                types_only=False,
            )
        except _TRANSPORT_ERRORS as exc:
            raise DirectoryConnectionError(f"Search under {base_dn} failed: {exc}") from exc
        except LDAPException as exc:
            raise DirectorySearchError(
                f"Search {search_filter} under {base_dn} failed: {exc}",
                details={"base_dn": base_dn, "filter": search_filter},
            ) from exc

        result = dict(self._conn.result or {})
        if result.get("result", _RESULT_SUCCESS) != _RESULT_SUCCESS:
            raise DirectorySearchError(
                f"Search {search_filter} under {base_dn} failed: {_result_message(result)}",
                details={"base_dn": base_dn, "filter": search_filter, "result": result.get("result")},
            )

        entries = []
        for item in self._conn.response or []:
            if item.get("type") != "searchResEntry":
                continue
            attrs = {
                name: _as_strings(value)
                for name, value in (item.get("attributes") or {}).items()
            }
            entries.append(DirectoryEntry(dn=str(item.get("dn", "")), attributes=attrs))
        return entries

    def close(self) -> None:
        self._discard(self._conn)
