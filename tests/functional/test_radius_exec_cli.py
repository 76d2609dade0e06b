"""The radius-exec command line against real configuration files."""

import logging
import shlex
import sys

import pytest

from radius_exec.cli import main, read_attribute_file
from radius_exec.utils.logger import configure


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    configure(level=logging.WARNING)


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def _config(tmp_path, script_body):
    script = _write(tmp_path, "helper.py", script_body)
    program = f"{shlex.quote(sys.executable)} {shlex.quote(script)} %{{User-Name}}"
    return _write(
        tmp_path,
        "exec.conf",
        "[logging]\nlevel = error\n\n"
        "[exec]\nwait = no\n\n"
        f"[exec greet]\nprogram = {program}\noutput_pairs = reply\n"
        "ntlm_auth_response = no\n",
    )


def test_check_config_ok(tmp_path, capsys):
    path = _config(tmp_path, "pass\n")
    assert main(["check-config", "-c", path]) == 0
    out = capsys.readouterr().out
    assert "greet: wait=yes" in out
    assert "exec: wait=no" in out
    assert "Configuration is valid" in out


def test_check_config_reports_errors(tmp_path, capsys):
    path = _write(tmp_path, "bad.conf", "[exec x]\ntimeout = 99\n")
    assert main(["check-config", "-c", path]) == 1
    assert "too large" in capsys.readouterr().out


def test_check_config_missing_file(tmp_path, capsys):
    assert main(["check-config", "-c", str(tmp_path / "none.conf")]) == 1


def test_run_prints_result_and_reply(tmp_path, capsys):
    path = _config(
        tmp_path, "import sys\nprint('Reply-Message = \"hi ' + sys.argv[1] + '\"')\n"
    )
    attrs = _write(tmp_path, "request.txt", "# request\nUser-Name = bob\n")
    rc = main(
        ["run", "-c", path, "--module", "greet", "--stage", "authorize", "--attrs", attrs]
    )
    assert rc == 0
    out = capsys.readouterr().out
    assert "result: ok" in out
    assert 'Reply-Message = "hi bob"' in out


def test_run_exit_code_maps_to_result(tmp_path, capsys):
    path = _config(tmp_path, "import sys\nsys.exit(1)\n")
    assert main(["run", "-c", path, "--module", "greet"]) == 0
    assert "result: reject" in capsys.readouterr().out


def test_run_unknown_module(tmp_path, capsys):
    path = _config(tmp_path, "pass\n")
    assert main(["run", "-c", path, "--module", "nope"]) == 1


def test_read_attribute_file(tmp_path):
    path = _write(tmp_path, "a.txt", 'User-Name = "bob"\n\nSession-Timeout = 10\n')
    attrs = read_attribute_file(path)
    assert [str(a) for a in attrs] == ['User-Name = "bob"', "Session-Timeout = 10"]
