"""Unified configuration loading mechanism.

Load order: config file → environment variables → defaults
Exception: the service account password only comes from the environment.
"""

import configparser
import os

from ldap_group_auth.utils.logger import get_logger

from .constants import DEFAULTS, ENV_LDAP_BIND_PASSWORD, ENV_OVERRIDABLE_KEYS, ENV_PREFIX

logger = get_logger(__name__)


def apply_env_overrides(
    config: configparser.ConfigParser,
    section: str,
    key: str,
    env_var: str | None = None,
) -> None:
    """Apply environment variable override to config value.

    Args:
        config: ConfigParser instance
        section: Section name
        key: Key name
        env_var: Optional custom environment variable name.
                If None, derives from LDAP_AUTH_SECTION_KEY pattern.
    """
    if env_var is None:
        env_var = f"{ENV_PREFIX}{section.upper()}_{key.upper()}"

    value = os.environ.get(env_var)
    if value is None:
        return
    if not config.has_section(section):
        config.add_section(section)
    # only fill keys the config file left unset
    if not config.has_option(section, key):
        config.set(section, key, value)
        logger.debug(
            "Applied environment override for config key",
            event="ldap_auth.config.loader.env_override_applied",
            section=section,
            key=key,
            env_var=env_var,
        )
    else:
        logger.debug(
            "Skipping environment override because config already defines the value",
            event="ldap_auth.config.loader.env_override_skipped",
            section=section,
            key=key,
        )


def apply_all_env_overrides(config: configparser.ConfigParser) -> None:
    """Apply all environment variable overrides following standard naming.

    Environment variables should follow pattern: LDAP_AUTH_SECTION_KEY
    Examples:
        - LDAP_AUTH_LDAP_HOST
        - LDAP_AUTH_ACCESS_ALLOWED_GROUPS

    The bind password is loaded only from LDAP_BIND_PASSWORD; a value in
    the file is discarded.
    """
    for section, keys in ENV_OVERRIDABLE_KEYS.items():
        for key in keys:
            apply_env_overrides(config, section, key)

    if config.has_option("ldap", "bind_password"):
        logger.warning(
            "Ignoring bind_password from configuration file; use the environment",
            event="ldap_auth.config.loader.file_secret_ignored",
            env_var=ENV_LDAP_BIND_PASSWORD,
        )
        config.remove_option("ldap", "bind_password")

    bind_password = os.environ.get(ENV_LDAP_BIND_PASSWORD)
    if bind_password:
        if not config.has_section("ldap"):
            config.add_section("ldap")
        config.set("ldap", "bind_password", bind_password)


def default_config() -> configparser.ConfigParser:
    defaults = configparser.ConfigParser(interpolation=None)
    defaults.read_dict(DEFAULTS)
    return defaults


def load_config(
    source: str, defaults: configparser.ConfigParser | None = None
) -> configparser.ConfigParser:
    """Load configuration with unified precedence.

    Load order:
    1. Load from file if it exists
    2. Apply environment variable overrides (only when the value is missing)
    3. Apply defaults for anything still unset

    Args:
        source: Configuration file path
        defaults: Optional ConfigParser with default values; the built-in
            defaults are used when omitted

    Returns:
        Loaded ConfigParser instance
    """
    # Filter templates contain "%s"; interpolation must stay off.
    config = configparser.ConfigParser(interpolation=None)

    if os.path.exists(source):
        logger.info(
            "Loading configuration from file source",
            event="ldap_auth.config.loader.file_load",
            source=source,
        )
        config.read(source, encoding="utf-8")
    else:
        logger.warning(
            "Configuration file source does not exist; using defaults and overrides",
            event="ldap_auth.config.loader.missing_file",
            source=source,
        )

    apply_all_env_overrides(config)

    if defaults is None:
        defaults = default_config()
    for section in defaults.sections():
        if not config.has_section(section):
            config.add_section(section)
        for key, value in defaults.items(section):
            if not config.has_option(section, key):
                config.set(section, key, value)

    return config
