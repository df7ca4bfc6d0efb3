"""Configuration getter functions.

All getters are pure functions: ConfigParser → typed value
No side effects, no state modification.
"""

import configparser
import logging

from pydantic import ValidationError

from ldap_group_auth.exceptions import ConfigurationError

from .constants import SECTION_ACCESS, SECTION_LDAP, SECTION_LOGGING
from .schema import LDAPConfiguration


def get_ldap_configuration(config: configparser.ConfigParser) -> LDAPConfiguration:
    """Build the validated, immutable directory configuration."""
    if not config.has_section(SECTION_LDAP):
        raise ConfigurationError(f"[{SECTION_LDAP}] section is missing")
    raw = dict(config.items(SECTION_LDAP))
    try:
        return LDAPConfiguration(**raw)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or SECTION_LDAP}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ConfigurationError(
            "Invalid [ldap] configuration", details={"errors": errors}
        ) from exc


def get_allowed_groups(config: configparser.ConfigParser) -> list[str]:
    """Get the allow-list of group names, in configured order."""
    value = config.get(SECTION_ACCESS, "allowed_groups", fallback="")
    return [group.strip() for group in value.split(",") if group.strip()]


def get_log_level(config: configparser.ConfigParser) -> int:
    name = config.get(SECTION_LOGGING, "log_level", fallback="INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
