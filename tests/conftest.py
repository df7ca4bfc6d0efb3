"""
Test configuration and fixtures

The directory client is exercised against FakeDirectory, an in-memory
DirectoryConnection. The ldap3 adapter has its own tests using ldap3's
MOCK_SYNC strategy.
"""

from __future__ import annotations

import pytest

from ldap_group_auth.config.schema import LDAPConfiguration
from tests.fakes import SERVICE_DN, SERVICE_PASSWORD, FakeDirectory


@pytest.fixture
def directory() -> FakeDirectory:
    """Directory with one user (jdoe) in two groups and one unrelated group."""
    d = FakeDirectory()
    d.passwords[SERVICE_DN] = SERVICE_PASSWORD
    d.add_entry(
        "uid=jdoe,ou=people,dc=example,dc=com",
        password="validpass",
        uid="jdoe",
        givenName="John",
        mail="jdoe@example.com",
    )
    d.add_entry("cn=eng,ou=groups,dc=example,dc=com", cn="eng", memberUid=["jdoe", "asmith"])
    d.add_entry("cn=ops,ou=groups,dc=example,dc=com", cn="ops", memberUid="jdoe")
    d.add_entry("cn=sales,ou=groups,dc=example,dc=com", cn="sales", memberUid="asmith")
    return d


@pytest.fixture
def ldap_config() -> LDAPConfiguration:
    return LDAPConfiguration(
        host="ldap.example.com",
        base_dn="dc=example,dc=com",
        bind_dn=SERVICE_DN,
        bind_password=SERVICE_PASSWORD,
        attributes=("givenName", "mail"),
        user_filter="(uid=%s)",
        group_filter="(memberUid=%s)",
    )


@pytest.fixture
def anonymous_config(ldap_config: LDAPConfiguration) -> LDAPConfiguration:
    """Same directory, no service account."""
    return ldap_config.model_copy(update={"bind_dn": "", "bind_password": ""})
