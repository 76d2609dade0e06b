import logging

import pytest

from radius_exec.config.loader import (
    env_var_name,
    load_config,
    log_level,
    module_configs,
    new_parser,
    parse_section_name,
)
from radius_exec.exceptions import ConfigurationError

CONFIG = """
[logging]
level = debug

[exec]
wait = no

[exec ntlm]
program = /usr/bin/ntlm_auth --request-nt-key --username=%{User-Name}
packet_type = Access-Request
timeout = 5

[other]
key = value
"""


def write_config(tmp_path, text=CONFIG):
    path = tmp_path / "exec.conf"
    path.write_text(text, encoding="utf-8")
    return str(path)


@pytest.mark.parametrize(
    "section,expected",
    [
        ("exec", (True, None)),
        ("exec ntlm", (True, "ntlm")),
        ("exec  spaced", (True, "spaced")),
        ("executor", (False, None)),
        ("exec a b", (False, None)),
        ("logging", (False, None)),
    ],
)
def test_parse_section_name(section, expected):
    assert parse_section_name(section) == expected


def test_env_var_names():
    assert env_var_name(None, "timeout") == "RADIUS_EXEC_TIMEOUT"
    assert env_var_name("ntlm", "wait") == "RADIUS_EXEC_NTLM_WAIT"
    assert env_var_name("my-helper.v2", "program") == "RADIUS_EXEC_MY_HELPER_V2_PROGRAM"


def test_sections_become_module_configs(tmp_path):
    configs = module_configs(load_config(write_config(tmp_path)))
    assert [(c.name, c.bare) for c in configs] == [(None, True), ("ntlm", False)]
    ntlm = configs[1]
    assert ntlm.program.endswith("--username=%{User-Name}")
    assert ntlm.timeout == 5
    assert ntlm.packet_type == "Access-Request"


def test_environment_fills_unset_options(tmp_path, monkeypatch):
    monkeypatch.setenv("RADIUS_EXEC_NTLM_SHELL_ESCAPE", "no")
    monkeypatch.setenv("RADIUS_EXEC_PROGRAM", "/usr/bin/logger")
    configs = module_configs(load_config(write_config(tmp_path)))
    bare, ntlm = configs
    assert ntlm.shell_escape is False
    assert bare.program == "/usr/bin/logger"


def test_file_takes_precedence_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("RADIUS_EXEC_NTLM_TIMEOUT", "20")
    configs = module_configs(load_config(write_config(tmp_path)))
    assert configs[1].timeout == 5


def test_invalid_section_raises(tmp_path):
    path = write_config(tmp_path, "[exec bad]\nwait = no\noutput_pairs = reply\n")
    with pytest.raises(ConfigurationError, match="exec \\(bad\\)"):
        module_configs(load_config(path))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(str(tmp_path / "nope.conf"))


def test_unparseable_file(tmp_path):
    path = write_config(tmp_path, "no section header\n")
    with pytest.raises(ConfigurationError, match="Cannot parse"):
        load_config(path)


def test_log_level(tmp_path, monkeypatch):
    assert log_level(load_config(write_config(tmp_path))) == logging.DEBUG
    monkeypatch.setenv("RADIUS_EXEC_LOG_LEVEL", "warning")
    assert log_level(new_parser()) == logging.WARNING
    monkeypatch.delenv("RADIUS_EXEC_LOG_LEVEL")
    assert log_level(new_parser()) == logging.INFO
