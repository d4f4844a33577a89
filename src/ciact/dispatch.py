#!/usr/bin/env python3
"""
dispatch - Turn a selection into a workflow file and run it.

Accepted selections:
  - menu number (1-based, the quit row included)
  - q / quit / exit
  - short code ("bui")
  - filename with extension ("build.yml"), used verbatim
  - bare stem ("build"), probed as build.yml then build.yaml
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from ciact.catalog import WORKFLOW_SUFFIXES, WorkflowCatalog, workflow_title
from ciact.config import DEFAULT_RUNNER
from ciact.errors import RunnerError, SelectionError
from ciact.gitctx import RepoContext
from ciact.status import QueryFailed, StatusClient

logger = logging.getLogger(__name__)

QUIT_WORDS = ("q", "quit", "exit")
_NUMBER = re.compile(r"[0-9]+")


class Dispatcher:
    def __init__(self, catalog: WorkflowCatalog, context: RepoContext,
                 client: StatusClient, runner: str = DEFAULT_RUNNER, out=None):
        self.catalog = catalog
        self.context = context
        self.client = client
        self.runner = runner
        self.out = out

    def _print(self, text: str = "") -> None:
        print(text, file=self.out, flush=True)

    # ── resolution ───────────────────────────────────────────

    def _unresolved(self, choice: str, file: str) -> SelectionError:
        lines = [f"Unknown option or missing workflow file: {choice} -> {file}"]
        lines += self.catalog.describe()
        return SelectionError("\n".join(lines))

    def resolve(self, choice: str) -> str:
        """Workflow filename for a short code, filename, or bare stem."""
        entry = self.catalog.lookup(choice)
        if entry is not None:
            file = entry.file
        elif choice.endswith(WORKFLOW_SUFFIXES):
            file = choice
        else:
            file = f"{choice}.yml"
            for suffix in WORKFLOW_SUFFIXES:
                if self.catalog.path_for(choice + suffix).is_file():
                    file = choice + suffix
                    break

        if not self.catalog.path_for(file).is_file():
            raise self._unresolved(choice, file)
        return file

    def resolve_menu_input(self, raw: Optional[str]) -> Optional[str]:
        """Workflow filename for a menu answer; None means quit."""
        choice = (raw or "").strip()
        if not choice:
            raise SelectionError("no selection")

        if _NUMBER.fullmatch(choice):
            entries = self.catalog.entries
            idx = int(choice) - 1
            # entries, then the quit row
            if idx < 0 or idx > len(entries):
                raise SelectionError(f"invalid selection {choice}")
            if idx == len(entries):
                return None
            file = entries[idx].file
            if not self.catalog.path_for(file).is_file():
                raise SelectionError(f"workflow not found: {self.catalog.path_for(file)}")
            return file

        if choice.lower() in QUIT_WORDS:
            return None
        return self.resolve(choice)

    # ── run ──────────────────────────────────────────────────

    def print_status(self, file: str) -> None:
        ctx = self.context
        if not ctx.can_poll:
            self._print("GHA status: (skipped; missing git branch or remote)")
            return
        result = self.client.latest_run(ctx.owner, ctx.repo, file, ctx.branch, ctx.token)
        if isinstance(result, QueryFailed):
            if result.code is not None:
                self._print(f"GHA status: request failed ({result.code})")
            else:
                self._print(f"GHA status: error {result.reason}")
            return
        self._print(f"Latest GHA ({ctx.branch}) for {file}: {result.display}")

    def command_for(self, path: Path) -> List[str]:
        return [*shlex.split(self.runner), "-W", str(path)]

    def run(self, file: str) -> int:
        path = self.catalog.path_for(file)
        self.print_status(file)

        cmd = self.command_for(path)
        self._print(f"Running '{workflow_title(path)}' ({file}) with {self.runner}")
        logger.info("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, check=False)
        except FileNotFoundError:
            raise RunnerError(f"'{cmd[0]}' command not found", returncode=127)

        if proc.returncode != 0:
            logger.info("%s exited with %s", cmd[0], proc.returncode)
            raise RunnerError(f"'{cmd[0]}' exited with status {proc.returncode}",
                              returncode=proc.returncode)
        return 0
