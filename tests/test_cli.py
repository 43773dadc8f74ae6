import pytest

from hubblecli import cli
from hubblecli.defaults import SERVER_ADDRESS
from hubblecli.version import version_line


def test_server_flag_before_or_after_command():
    parser = cli.build_parser()
    after = parser.parse_args(["status", "--server", "a.example.com:1"])
    before = parser.parse_args(["--server", "a.example.com:1", "status"])
    assert after.server == before.server == "a.example.com:1"


def test_status_output_default_and_override():
    parser = cli.build_parser()
    assert parser.parse_args(["status"]).output == "compact"
    assert parser.parse_args(["status", "-o", "json"]).output == "json"


def test_timeout_flag_parses_duration():
    args = cli.build_parser().parse_args(["status", "--timeout", "1500ms"])
    assert args.timeout == pytest.approx(1.5)


def test_watch_alias_and_peer_alias():
    args = cli.build_parser().parse_args(["w", "peer"])
    assert args.handler is cli._run_peers


def test_root_version_flag(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out == f"hubble v{cli.VERSION}\r\n"


def test_version_command(capsys):
    assert cli.main(["version"]) == 0
    expected = version_line("hubble", cli.VERSION, cli.GIT_BRANCH, cli.GIT_HASH)
    assert capsys.readouterr().out.strip() == expected.strip()


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "Hubble is a utility" in capsys.readouterr().out


def test_unknown_command_is_usage_error():
    assert cli.main(["bogus"]) == 2


def test_bad_timeout_is_usage_error():
    assert cli.main(["status", "--timeout", "soon"]) == 2


def test_status_reports_connection_error(capsys):
    assert cli.main(["status", "--server", "example.com:4245"]) == 1
    assert "example.com:4245" in capsys.readouterr().err


def test_status_uses_default_server(capsys, tmp_path):
    empty = tmp_path / "config.yaml"
    empty.write_text("")
    assert cli.main(["--config", str(empty), "status"]) == 1
    assert SERVER_ADDRESS in capsys.readouterr().err


def test_config_file_sets_server(capsys, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("# settings\nserver: cfg.example.com:4245\n")
    assert cli.main(["--config", str(cfg), "watch", "peers"]) == 1
    assert "cfg.example.com:4245" in capsys.readouterr().err


def test_flag_overrides_config_file(capsys, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("server: cfg.example.com:4245\n")
    assert cli.main(["--config", str(cfg), "status", "--server", "flag.example.com:1"]) == 1
    err = capsys.readouterr().err
    assert "flag.example.com:1" in err
    assert "cfg.example.com" not in err