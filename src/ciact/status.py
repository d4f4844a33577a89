#!/usr/bin/env python3
"""
status - Latest-run lookups against the GitHub Actions API.

One call = one GET of
``/repos/{owner}/{repo}/actions/workflows/{file}/runs?branch=..&per_page=1``.
Failures come back as a ``QueryFailed`` value instead of an exception so a
poller can show them and move on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import requests

from ciact import __version__
from ciact.config import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

USER_AGENT = f"ciact/{__version__}"


class RunState(Enum):
    UNKNOWN = "unknown"
    PENDING = "pending"
    RUNNING = "running"
    DONE_OK = "done-ok"
    DONE_FAIL = "done-fail"

    @property
    def is_done(self) -> bool:
        return self in (RunState.DONE_OK, RunState.DONE_FAIL)


_ICONS = {
    RunState.UNKNOWN: "⏳️",
    RunState.PENDING: "⏳️",
    RunState.RUNNING: "👟",
    RunState.DONE_OK: "✅",
    RunState.DONE_FAIL: "🍅",
}


def run_state(status: Optional[str], conclusion: Optional[str]) -> RunState:
    """Map the API's (status, conclusion) pair; unknown statuses count as pending."""
    if status == "queued":
        return RunState.PENDING
    if status == "in_progress":
        return RunState.RUNNING
    if status == "completed":
        return RunState.DONE_OK if conclusion == "success" else RunState.DONE_FAIL
    return RunState.PENDING


@dataclass(frozen=True)
class RunFound:
    state: RunState
    status: Optional[str]
    conclusion: Optional[str]

    @property
    def details(self) -> str:
        return "/".join(p for p in (self.status, self.conclusion) if p)

    @property
    def display(self) -> str:
        return f"{_ICONS[self.state]} ({self.details})"

    @property
    def terminal(self) -> bool:
        return self.state.is_done


@dataclass(frozen=True)
class NoRuns:
    display: str = "none"
    terminal: bool = True


@dataclass(frozen=True)
class QueryFailed:
    code: Optional[int] = None
    reason: str = ""

    @property
    def display(self) -> str:
        return f"fail {self.code}" if self.code is not None else "err"

    @property
    def terminal(self) -> bool:
        return True


QueryResult = Union[RunFound, NoRuns, QueryFailed]


class StatusClient:
    """Thin requests wrapper for the workflow-runs endpoint."""

    def __init__(self, api_url: str = DEFAULT_API_URL,
                 timeout: float = DEFAULT_REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        # Shared across poller threads: module-level requests.get unless a
        # session is injected.
        self.session = session

    def runs_url(self, owner: str, repo: str, workflow_file: str) -> str:
        return f"{self.api_url}/repos/{owner}/{repo}/actions/workflows/{workflow_file}/runs"

    def latest_run(self, owner: str, repo: str, workflow_file: str, branch: str,
                   token: Optional[str] = None) -> QueryResult:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github+json",
        }
        if token:
            headers["Authorization"] = f"token {token}"

        try:
            get = self.session.get if self.session is not None else requests.get
            resp = get(
                self.runs_url(owner, repo, workflow_file),
                params={"branch": branch, "per_page": 1},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.debug("%s: request error %s: %s", workflow_file, type(e).__name__, e)
            return QueryFailed(reason=f"{type(e).__name__}: {e}")

        if not resp.ok:
            logger.debug("%s: HTTP %s", workflow_file, resp.status_code)
            return QueryFailed(code=resp.status_code, reason=resp.reason or "")

        try:
            data = resp.json()
        except ValueError as e:
            logger.debug("%s: bad JSON: %s", workflow_file, e)
            return QueryFailed(reason=f"invalid JSON: {e}")

        runs = data.get("workflow_runs") if isinstance(data, dict) else None
        if not isinstance(runs, list):
            return QueryFailed(reason="payload has no workflow_runs list")
        if not runs:
            return NoRuns()

        run = runs[0]
        if not isinstance(run, dict):
            return QueryFailed(reason="malformed run object")
        status = run.get("status")
        conclusion = run.get("conclusion")
        return RunFound(run_state(status, conclusion), status, conclusion)

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
