#!/usr/bin/env python3
"""
gitctx - Local git context for status polling.

Resolves branch, upstream, short HEAD and the GitHub owner/repo of the
origin remote. Each lookup may fail on its own; a failure leaves that
field unset and is logged once. Nothing here raises to the caller.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# user@host:owner/repo(.git)
_SSH_ORIGIN = re.compile(r"^[^@/\s]+@[^:/\s]+:(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$")
# https://host/owner/repo(.git)
_HTTPS_ORIGIN = re.compile(r"^https://[^/\s]+/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$")


def run_git(args: List[str], cwd: Optional[Path] = None, check: bool = True, timeout: int = 10) -> subprocess.CompletedProcess:
    """Run git command and return result with timeout and error handling."""
    try:
        result = subprocess.run(
            ["git"] + args,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
            timeout=timeout,
            encoding='utf-8',
            errors='replace'
        )

        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode,
                ["git"] + args,
                result.stdout,
                result.stderr
            )

        return result

    except subprocess.TimeoutExpired:
        raise RuntimeError(f"Git command timed out after {timeout}s: git {' '.join(args)}")
    except subprocess.CalledProcessError:
        raise
    except OSError as e:
        raise RuntimeError(f"Git command failed: git {' '.join(args)}\n{str(e)}")


def _git_value(args: List[str], cwd: Optional[Path], failures: List[str]) -> Optional[str]:
    """stdout of a git query, or None when it fails or prints nothing.

    A failure is appended to ``failures`` instead of being logged here.
    """
    try:
        result = run_git(args, cwd=cwd)
    except (subprocess.CalledProcessError, RuntimeError) as e:
        detail = (getattr(e, "stderr", None) or str(e)).strip().splitlines()
        failures.append(f"git {' '.join(args)}: {detail[0] if detail else 'failed'}")
        return None
    value = result.stdout.strip()
    return value or None


def parse_origin(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """(owner, repo) from an SSH or HTTPS remote URL; first pattern wins."""
    if not url:
        return None
    for pattern in (_SSH_ORIGIN, _HTTPS_ORIGIN):
        m = pattern.match(url.strip())
        if m:
            return m.group("owner"), m.group("repo")
    return None


@dataclass(frozen=True)
class RepoContext:
    branch: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    upstream: Optional[str] = None
    sha: Optional[str] = None
    token: Optional[str] = None

    @property
    def can_poll(self) -> bool:
        return bool(self.owner and self.repo and self.branch)

    @property
    def slug(self) -> Optional[str]:
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return None

    @classmethod
    def resolve(cls, repo_path: Optional[Path] = None, token: Optional[str] = None) -> "RepoContext":
        failures: List[str] = []
        branch = _git_value(["rev-parse", "--abbrev-ref", "HEAD"], repo_path, failures)
        if branch == "HEAD":
            # detached
            branch = None

        origin = parse_origin(_git_value(["config", "--get", "remote.origin.url"], repo_path, failures))
        owner, repo = origin if origin else (None, None)

        upstream = _git_value(
            ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], repo_path, failures
        )
        if upstream is None and branch:
            upstream = f"origin/{branch}"

        sha = _git_value(["rev-parse", "--short", "HEAD"], repo_path, failures)

        if failures:
            logger.debug("git context incomplete in %s: %s", repo_path or ".", "; ".join(failures))

        return cls(branch=branch, owner=owner, repo=repo,
                   upstream=upstream, sha=sha, token=token)

    def header_lines(self) -> List[str]:
        return [
            f"Repo: {self.slug or 'n/a'}",
            f"Upstream: {self.upstream or 'n/a'}",
            f"HEAD: {self.sha or 'n/a'}",
        ]
