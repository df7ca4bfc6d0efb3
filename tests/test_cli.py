import io
import json
import logging

import pytest

from ldap_group_auth import cli
from ldap_group_auth.auth.ldap_client import LDAPClient
from ldap_group_auth.exceptions import DirectoryConnectionError

from tests.fakes import SERVICE_DN, SERVICE_PASSWORD

CONFIG = f"""
[ldap]
host = ldap.example.com
base_dn = dc=example,dc=com
bind_dn = {SERVICE_DN}
attributes = givenName,mail

[access]
allowed_groups = admin,eng
"""


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "ldap_auth.conf"
    path.write_text(CONFIG, encoding="utf-8")
    monkeypatch.setenv("LDAP_BIND_PASSWORD", SERVICE_PASSWORD)
    return str(path)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def fake_open(monkeypatch, directory):
    opened = []

    def _open(cfg, connection=None):
        opened.append(cfg)
        return LDAPClient(directory, cfg)

    monkeypatch.setattr(cli, "open_client", _open)
    return opened


def test_check_config_valid(config_file, capsys):
    assert cli.main(["--config", config_file, "check-config"]) == cli.EXIT_OK
    assert "Configuration is valid" in capsys.readouterr().out


def test_check_config_invalid(tmp_path, capsys):
    path = tmp_path / "bad.conf"
    path.write_text("[ldap]\nhost = ldap.example.com\n", encoding="utf-8")

    assert cli.main(["--config", str(path), "check-config"]) == cli.EXIT_CONFIG
    out = capsys.readouterr().out
    assert "Configuration validation failed" in out
    assert "base_dn" in out


def test_login_allowed(config_file, fake_open, directory, capsys):
    code = cli.main(
        ["--config", config_file, "login", "-u", "jdoe", "--password", "validpass"]
    )

    assert code == cli.EXIT_OK
    summary = json.loads(capsys.readouterr().out)
    assert summary["authenticated"] is True
    assert summary["allowed"] is True
    assert summary["groups"] == ["eng", "ops"]
    assert fake_open[0].bind_password == SERVICE_PASSWORD
    assert directory.close_count == 1


def test_login_denied_by_allow_list(config_file, fake_open, capsys):
    code = cli.main(
        [
            "--config",
            config_file,
            "login",
            "-u",
            "jdoe",
            "--password",
            "validpass",
            "--allow",
            "admin,sales",
        ]
    )

    assert code == cli.EXIT_DENIED
    summary = json.loads(capsys.readouterr().out)
    assert summary["authenticated"] is True
    assert summary["allowed"] is False


def test_login_wrong_password_from_stdin(config_file, fake_open, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("badpass\n"))

    code = cli.main(["--config", config_file, "login", "-u", "jdoe", "--stdin"])

    assert code == cli.EXIT_DENIED
    summary = json.loads(capsys.readouterr().out)
    assert summary["authenticated"] is False
    assert summary["error_code"] == "invalid_credentials"
    assert summary["step"] == "user_bind"
    assert "groups" not in summary


def test_login_connection_failure(config_file, monkeypatch, capsys):
    def _open(cfg, connection=None):
        raise DirectoryConnectionError("Unable to connect to LDAP server ldap.example.com:389")

    monkeypatch.setattr(cli, "open_client", _open)

    code = cli.main(["--config", config_file, "login", "-u", "jdoe", "--password", "x"])

    assert code == cli.EXIT_DENIED
    summary = json.loads(capsys.readouterr().out)
    assert summary["error_code"] == "connection_error"


def test_groups_command(config_file, fake_open, capsys):
    assert cli.main(["--config", config_file, "groups", "-u", "jdoe"]) == cli.EXIT_OK
    assert capsys.readouterr().out.split() == ["eng", "ops"]


def test_login_empty_password_is_not_prompted(config_file, fake_open, directory, monkeypatch, capsys):
    def _no_prompt(prompt=""):
        raise AssertionError("password prompt must not be shown")

    monkeypatch.setattr(cli.getpass, "getpass", _no_prompt)

    code = cli.main(["--config", config_file, "login", "-u", "jdoe", "--password", ""])

    assert code == cli.EXIT_DENIED
    summary = json.loads(capsys.readouterr().out)
    assert summary["error_code"] == "invalid_input"
    assert summary["step"] == "validate"
    assert directory.calls == []
