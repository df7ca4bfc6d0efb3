"""Pydantic schema for the directory client configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import (
    DEFAULT_GROUP_ATTRIBUTE,
    DEFAULT_GROUP_FILTER,
    DEFAULT_LDAP_PORT,
    DEFAULT_USER_FILTER,
)


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return value


def validate_filter_template(template: str) -> str:
    """Require exactly one ``%s`` placeholder; ``%%`` is a literal percent."""
    stripped = template.replace("%%", "")
    placeholders = stripped.count("%s")
    if placeholders != 1 or stripped.count("%") != placeholders:
        raise ValueError(
            f"filter template must contain exactly one %s placeholder: {template!r}"
        )
    return template


class LDAPConfiguration(BaseModel):
    """Everything needed to dial the directory and run the auth queries.

    Immutable once built; a client keeps the instance for its lifetime.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attributes: tuple[str, ...] = Field(default=())
    base_dn: str = Field(..., min_length=1)
    bind_dn: str = Field(default="")
    bind_password: str = Field(default="", repr=False)
    user_filter: str = Field(default=DEFAULT_USER_FILTER)
    group_filter: str = Field(default=DEFAULT_GROUP_FILTER)
    group_attribute: str = Field(default=DEFAULT_GROUP_ATTRIBUTE, min_length=1)
    host: str = Field(..., min_length=1)
    port: int = Field(default=DEFAULT_LDAP_PORT, ge=1, le=65535)
    server_name: str = Field(default="")
    use_tls: bool = Field(default=False, description="Upgrade with StartTLS")
    use_ssl: bool = Field(default=False, description="Implicit TLS (ldaps)")
    insecure_skip_verify: bool = Field(default=False)
    ca_certs_file: str = Field(default="")
    client_cert_file: str = Field(default="")
    client_key_file: str = Field(default="")
    connect_timeout: float | None = Field(default=None, gt=0)

    @field_validator("attributes", mode="before")
    @classmethod
    def _parse_attributes(cls, v: Any) -> Any:
        return _split_csv(v)

    @field_validator("attributes")
    @classmethod
    def _drop_dn_attribute(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        # "dn" is always part of the user record and is not a real attribute
        return tuple(a for a in v if a.lower() != "dn")

    @field_validator("user_filter", "group_filter")
    @classmethod
    def _check_template(cls, v: str) -> str:
        return validate_filter_template(v)

    @field_validator("connect_timeout", mode="before")
    @classmethod
    def _empty_timeout(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _cross_field_validation(self) -> LDAPConfiguration:
        if self.use_tls and self.use_ssl:
            raise ValueError("use_tls (StartTLS) and use_ssl (ldaps) are mutually exclusive")
        if bool(self.client_cert_file) != bool(self.client_key_file):
            raise ValueError("client_cert_file and client_key_file must be set together")
        return self

    @property
    def has_service_account(self) -> bool:
        return bool(self.bind_dn and self.bind_password)

    @property
    def tls_enabled(self) -> bool:
        return self.use_tls or self.use_ssl

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"
