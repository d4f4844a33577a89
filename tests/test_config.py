"""Tests for ciact configuration."""

import json

from ciact.config import (
    DEFAULT_API_URL,
    DEFAULT_EXCLUSIONS,
    DEFAULT_STARTUP_DELAY,
    Settings,
    load_config,
    load_settings,
    show_config,
)


def test_defaults():
    s = load_settings(env={}, config={})

    assert s == Settings()
    assert s.poll_interval == 5.0
    assert s.token is None
    assert s.api_url == DEFAULT_API_URL
    assert s.runner == "act"
    assert s.startup_delay == DEFAULT_STARTUP_DELAY
    assert s.exclusions == DEFAULT_EXCLUSIONS


def test_poll_interval_from_env_beats_config():
    s = load_settings(env={"CI_ACT_POLL_INTERVAL": "2.5"}, config={"poll_interval": 9})
    assert s.poll_interval == 2.5

    s = load_settings(env={}, config={"poll_interval": 9})
    assert s.poll_interval == 9.0


def test_bad_poll_interval_falls_back():
    assert load_settings(env={"CI_ACT_POLL_INTERVAL": "soon"}, config={}).poll_interval == 5.0
    assert load_settings(env={"CI_ACT_POLL_INTERVAL": "0"}, config={}).poll_interval == 5.0
    assert load_settings(env={"CI_ACT_POLL_INTERVAL": "-3"}, config={}).poll_interval == 5.0


def test_token_sources():
    assert load_settings(env={"GH_TOKEN": "gh"}, config={}).token == "gh"
    assert load_settings(env={"GITHUB_TOKEN": "ghp", "GH_TOKEN": "gh"}, config={}).token == "ghp"
    assert load_settings(env={"GITHUB_TOKEN": ""}, config={}).token is None


def test_ci_and_debug_flags():
    s = load_settings(env={"CI": "TRUE", "DEBUG": "true"}, config={})
    assert s.is_ci and s.debug
    assert s.startup_delay == 0.0

    s = load_settings(env={"CI": "1"}, config={})
    assert not s.is_ci


def test_config_file_values():
    s = load_settings(env={"GITHUB_API_URL": "https://ghe.example.com/api/v3/"}, config={
        "runner": "gh act",
        "exclusions": ["nightly.yml"],
        "api_url": "https://ignored.example.com",
    })

    assert s.runner == "gh act"
    assert s.api_url == "https://ghe.example.com/api/v3"
    assert "nightly.yml" in s.exclusions
    assert DEFAULT_EXCLUSIONS <= s.exclusions


def test_non_list_exclusions_ignored():
    s = load_settings(env={}, config={"exclusions": "nightly.yml"})
    assert s.exclusions == DEFAULT_EXCLUSIONS


def test_load_config(tmp_path):
    missing = tmp_path / "missing.json"
    assert load_config(missing) == {}

    good = tmp_path / "good.json"
    good.write_text(json.dumps({"poll_interval": 3}))
    assert load_config(good) == {"poll_interval": 3}

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert load_config(broken) == {}

    wrong_shape = tmp_path / "list.json"
    wrong_shape.write_text("[1, 2]")
    assert load_config(wrong_shape) == {}


def test_show_config(capsys):
    show_config(Settings(token="secret"))

    out = capsys.readouterr().out
    assert "CIACT CONFIGURATION" in out
    assert "Poll interval:      5s" in out
    assert "Token:              set" in out
    assert "secret" not in out


def test_wrongly_typed_strings_fall_back():
    s = load_settings(env={}, config={"api_url": 5, "runner": ["act", "-v"]})
    assert s.api_url == DEFAULT_API_URL
    assert s.runner == "act"

    s = load_settings(env={}, config={"api_url": "   ", "runner": ""})
    assert s.api_url == DEFAULT_API_URL
    assert s.runner == "act"


def test_bad_config_file_does_not_break_the_command(isolated_env, capsys):
    from ciact.cli import main

    config_dir = isolated_env / "home" / ".ciact"
    config_dir.mkdir(parents=True)
    (config_dir / "config.json").write_text(json.dumps({"api_url": 5, "runner": ["act"]}))

    assert main(["--show-config"]) == 0

    out = capsys.readouterr().out
    assert f"API URL:            {DEFAULT_API_URL}" in out
    assert "Runner:             act" in out
