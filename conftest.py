"""
Early pytest configuration plugin.

Loaded before any test module so that the repository root is importable
(``tests.fakes``) and the developer's shell environment cannot leak
directory settings into the tests.
"""

import os

import pytest

from ldap_group_auth.config.constants import ENV_LDAP_BIND_PASSWORD, ENV_PREFIX


@pytest.fixture(autouse=True)
def _isolate_ldap_env(monkeypatch):
    """Drop LDAP_AUTH_* and LDAP_BIND_PASSWORD for the duration of a test."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX) or name == ENV_LDAP_BIND_PASSWORD:
            monkeypatch.delenv(name, raising=False)
