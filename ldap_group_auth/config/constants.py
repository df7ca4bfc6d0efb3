"""Configuration constants and defaults.

This module contains all default configuration values and constants used
throughout the configuration system.
"""

# Section names
SECTION_LDAP = "ldap"
SECTION_ACCESS = "access"
SECTION_LOGGING = "logging"

# Environment variable prefixes
ENV_PREFIX = "LDAP_AUTH_"

# Secrets (environment only)
ENV_LDAP_BIND_PASSWORD = "LDAP_BIND_PASSWORD"

# Meta-configuration
ENV_LDAP_AUTH_CONFIG = "LDAP_AUTH_CONFIG"
DEFAULT_CONFIG_PATH = "config/ldap_auth.conf"

DEFAULT_LDAP_PORT = 389
DEFAULT_USER_FILTER = "(uid=%s)"
DEFAULT_GROUP_FILTER = "(memberUid=%s)"
DEFAULT_GROUP_ATTRIBUTE = "cn"

# Default values
DEFAULTS = {
    SECTION_LDAP: {
        "port": str(DEFAULT_LDAP_PORT),
        "attributes": "",
        "bind_dn": "",
        "user_filter": DEFAULT_USER_FILTER,
        "group_filter": DEFAULT_GROUP_FILTER,
        "group_attribute": DEFAULT_GROUP_ATTRIBUTE,
        "server_name": "",
        "use_tls": "false",
        "use_ssl": "false",
        "insecure_skip_verify": "false",
        "ca_certs_file": "",
        "client_cert_file": "",
        "client_key_file": "",
        "connect_timeout": "",
    },
    SECTION_ACCESS: {
        "allowed_groups": "",
    },
    SECTION_LOGGING: {
        "log_level": "INFO",
    },
}

# Keys that may be overridden from LDAP_AUTH_<SECTION>_<KEY>
ENV_OVERRIDABLE_KEYS = {
    SECTION_LDAP: [
        "host",
        "port",
        "base_dn",
        "attributes",
        "bind_dn",
        "user_filter",
        "group_filter",
        "group_attribute",
        "server_name",
        "use_tls",
        "use_ssl",
        "insecure_skip_verify",
        "ca_certs_file",
        "client_cert_file",
        "client_key_file",
        "connect_timeout",
    ],
    SECTION_ACCESS: ["allowed_groups"],
    SECTION_LOGGING: ["log_level"],
}
