from __future__ import annotations

import argparse
import getpass
import json
import os
import sys
from typing import Protocol, cast

from ldap_group_auth.auth import open_client, user_in_group
from ldap_group_auth.config import (
    get_allowed_groups,
    get_ldap_configuration,
    get_log_level,
    load_config,
)
from ldap_group_auth.config.constants import DEFAULT_CONFIG_PATH, ENV_LDAP_AUTH_CONFIG
from ldap_group_auth.exceptions import ConfigurationError, LdapAuthError
from ldap_group_auth.utils.logger import configure, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_DENIED = 1
EXIT_CONFIG = 2


def _load(args: argparse.Namespace):
    parser = load_config(args.config)
    configure(level=get_log_level(parser))
    return parser, get_ldap_configuration(parser)


def _read_password(args: argparse.Namespace) -> str:
    if args.password is not None:
        return args.password
    if args.stdin:
        return sys.stdin.readline().rstrip("\n")
    return getpass.getpass("Password: ")


def cmd_check_config(args: argparse.Namespace) -> int:
    try:
        parser, cfg = _load(args)
    except ConfigurationError as e:
        print(f"Configuration validation failed: {e}")
        for issue in e.details.get("errors", []):
            print(f"  - {issue}")
        return EXIT_CONFIG
    print(f"Configuration is valid ({cfg.address}, base {cfg.base_dn})")
    allowed = get_allowed_groups(parser)
    if not allowed:
        print("Warning: [access] allowed_groups is empty; every login will be denied")
    return EXIT_OK


def cmd_login(args: argparse.Namespace) -> int:
    try:
        parser, cfg = _load(args)
    except ConfigurationError as e:
        print(f"Configuration validation failed: {e}", file=sys.stderr)
        return EXIT_CONFIG

    allowed = (
        [g.strip() for g in args.allow.split(",") if g.strip()]
        if args.allow
        else get_allowed_groups(parser)
    )
    password = _read_password(args)

    summary: dict = {"username": args.username, "authenticated": False, "allowed": False}
    try:
        with open_client(cfg) as client:
            result = client.authenticate(args.username, password)
            summary["user"] = result.user
            if not result.success:
                summary["error"] = str(result.error)
                summary["error_code"] = result.error.error_code if result.error else None
                summary["step"] = result.step.value if result.step else None
            else:
                summary["authenticated"] = True
                groups = client.get_groups_of_user(args.username)
                summary["groups"] = groups
                summary["allowed"] = user_in_group(groups, allowed)
    except ConfigurationError as e:
        print(f"Configuration validation failed: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except LdapAuthError as e:
        logger.error("LDAP login check failed", error=str(e), error_code=e.error_code)
        summary["error"] = str(e)
        summary["error_code"] = e.error_code

    print(json.dumps(summary, indent=2, sort_keys=True))
    return EXIT_OK if summary["allowed"] else EXIT_DENIED


def cmd_groups(args: argparse.Namespace) -> int:
    try:
        _, cfg = _load(args)
    except ConfigurationError as e:
        print(f"Configuration validation failed: {e}", file=sys.stderr)
        return EXIT_CONFIG
    try:
        with open_client(cfg) as client:
            groups = client.get_groups_of_user(args.username)
    except LdapAuthError as e:
        print(f"Group lookup failed: {e}", file=sys.stderr)
        return EXIT_DENIED
    for group in groups:
        print(group)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ldap-group-auth",
        description="Authenticate a user against LDAP and check group membership",
    )
    p.add_argument(
        "--config",
        "-c",
        default=os.environ.get(ENV_LDAP_AUTH_CONFIG, DEFAULT_CONFIG_PATH),
        help="Path to config file",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sub_check = sub.add_parser("check-config", help="Validate configuration and report issues")
    sub_check.set_defaults(func=cmd_check_config)

    sub_login = sub.add_parser(
        "login", help="Authenticate a user and check the group allow-list"
    )
    sub_login.add_argument("--username", "-u", required=True)
    sub_login.add_argument("--password", help="Password (use stdin or prompt if omitted)")
    sub_login.add_argument(
        "--stdin", action="store_true", help="Read password from stdin (single line)"
    )
    sub_login.add_argument(
        "--allow", help="Comma separated allow-list; defaults to [access] allowed_groups"
    )
    sub_login.set_defaults(func=cmd_login)

    sub_groups = sub.add_parser("groups", help="List the groups of a user")
    sub_groups.add_argument("--username", "-u", required=True)
    sub_groups.set_defaults(func=cmd_groups)

    return p


class _Cmd(Protocol):
    def __call__(self, args: argparse.Namespace) -> int: ...


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = cast(_Cmd, getattr(args, "func"))
    return func(args)


if __name__ == "__main__":
    raise SystemExit(main())
