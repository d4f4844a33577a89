"""Shared fixtures for ciact tests."""

import subprocess
import threading
from pathlib import Path

import pytest

from ciact.catalog import WorkflowCatalog, workflows_dir


class FakeClient:
    """StatusClient stand-in: scripted results per workflow file.

    The last scripted result repeats once the script runs out.
    """

    def __init__(self, results=None, default=None, error=None):
        self.results = {k: list(v) for k, v in (results or {}).items()}
        self.default = default
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def latest_run(self, owner, repo, workflow_file, branch, token=None):
        with self._lock:
            self.calls.append((owner, repo, workflow_file, branch, token))
            if self.error is not None:
                raise self.error
            script = self.results.get(workflow_file)
            if not script:
                return self.default
            return script.pop(0) if len(script) > 1 else script[0]


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def make_workflows(tmp_path):
    """Create .github/workflows/<files> under a temp repo; return the catalog."""

    def _make(files, exclusions=(), contents=None):
        wdir = workflows_dir(tmp_path)
        wdir.mkdir(parents=True, exist_ok=True)
        for name in files:
            text = (contents or {}).get(name, "name: test\non: push\njobs: {}\n")
            (wdir / name).write_text(text)
        return WorkflowCatalog.discover(wdir, exclusions)

    return _make


@pytest.fixture
def fake_runner(monkeypatch):
    """Record runner invocations; git commands still go to the real git."""
    real_run = subprocess.run
    calls = []
    state = {"returncode": 0, "error": None}

    def _run(cmd, *args, **kwargs):
        if cmd and cmd[0] == "git":
            return real_run(cmd, *args, **kwargs)
        calls.append(list(cmd))
        if state["error"] is not None:
            raise state["error"]
        return subprocess.CompletedProcess(cmd, state["returncode"])

    monkeypatch.setattr(subprocess, "run", _run)
    _run.calls = calls
    _run.state = state
    return _run


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """No real config, tokens, CI flag, or enclosing git repository."""
    for var in ("GITHUB_TOKEN", "GH_TOKEN", "GITHUB_API_URL", "CI_ACT_POLL_INTERVAL", "DEBUG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CI", "true")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(Path(tmp_path).parent))
    return tmp_path
