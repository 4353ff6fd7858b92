from __future__ import annotations

import json

from toolkit_cli.cli_shared import GlobalOpts, _print_json, try_catch


def _boom() -> list[str]:
    raise OSError("unreadable")


def test_try_catch_returns_fallback_on_error():
    assert try_catch(lambda: ["a"], []) == ["a"]
    assert try_catch(_boom, []) == []


def test_global_opts_as_options_keeps_logger_handle(logger):
    g = GlobalOpts(deploy_exclusions="dist", deploy_token="secret", logger=logger, dry_run=True)
    options = g.as_options(loud=True)
    assert options.logger is logger
    assert options.loud is True
    assert options.dry_run is True
    assert options.bin_dir == "./bin"


def test_global_opts_describe_masks_token(logger):
    described = GlobalOpts(deploy_exclusions="dist", deploy_token="secret", logger=logger).describe()
    assert described["deploy_token"] == "***"
    assert "logger" not in described


def test_print_json_sorts_keys(capsys):
    _print_json({"b": 1, "a": [1, 2]})
    out = capsys.readouterr().out
    assert json.loads(out) == {"a": [1, 2], "b": 1}
    assert out.index('"a"') < out.index('"b"')
