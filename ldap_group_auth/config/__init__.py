"""Directory client configuration package

- INI file loading with environment variable overrides
- Pydantic validation into an immutable LDAPConfiguration
"""

from .getters import get_allowed_groups, get_ldap_configuration, get_log_level
from .loader import load_config
from .schema import LDAPConfiguration

__all__ = [
    "LDAPConfiguration",
    "get_allowed_groups",
    "get_ldap_configuration",
    "get_log_level",
    "load_config",
]
