#!/usr/bin/env python3
"""
poller - Concurrent per-workflow status polling.

One thread per catalog entry, all feeding a single queue of
``StatusUpdate`` messages. Workers never touch the terminal or any shared
state; the menu is the only consumer.

Sleeping is done on a shared ``threading.Event`` so ``stop()`` wakes every
worker at once. A worker stuck inside a network call finishes when the
request timeout fires; ``stop()`` waits for that up to a grace period and
then abandons the (daemon) thread.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ciact.catalog import WorkflowEntry
from ciact.config import DEFAULT_GRACE_PERIOD, DEFAULT_POLL_INTERVAL, DEFAULT_STARTUP_DELAY
from ciact.gitctx import RepoContext
from ciact.status import StatusClient

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "n/a"


@dataclass(frozen=True)
class StatusUpdate:
    code: str
    file: str
    display: str


class PollSupervisor:
    """Fan-out of status pollers over a catalog."""

    def __init__(
        self,
        entries: Iterable[WorkflowEntry],
        context: RepoContext,
        client: StatusClient,
        updates: Optional["queue.Queue[StatusUpdate]"] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        startup_delay: float = DEFAULT_STARTUP_DELAY,
    ):
        self.entries = list(entries)
        self.context = context
        self.client = client
        self.updates: "queue.Queue[StatusUpdate]" = updates if updates is not None else queue.Queue()
        self.poll_interval = poll_interval
        self.startup_delay = startup_delay
        self._cancel = threading.Event()
        self._workers: List[threading.Thread] = []
        self._started_at = 0.0

    # ── lifecycle ────────────────────────────────────────────

    def start(self) -> None:
        if self._workers:
            raise RuntimeError("PollSupervisor already started")
        self._started_at = time.monotonic()
        for entry in self.entries:
            t = threading.Thread(
                target=self._poll,
                args=(entry,),
                name=f"ciact-poll-{entry.code}",
                daemon=True,
            )
            self._workers.append(t)
            t.start()
        logger.debug("Started %d pollers", len(self._workers))

    def stop(self, grace: float = DEFAULT_GRACE_PERIOD) -> List[threading.Thread]:
        """Cancel all pollers; return the ones still alive after the grace period."""
        self._cancel.set()
        deadline = time.monotonic() + grace
        for t in self._workers:
            t.join(max(0.0, deadline - time.monotonic()))
        stragglers = [t for t in self._workers if t.is_alive()]
        if stragglers:
            logger.info("Abandoning %d poller(s) still in a request: %s",
                        len(stragglers), ", ".join(t.name for t in stragglers))
        return stragglers

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def active_count(self) -> int:
        return sum(1 for t in self._workers if t.is_alive())

    def __enter__(self) -> "PollSupervisor":
        self.start()
        return self

    def __exit__(self, *_):
        self.stop()

    # ── worker ───────────────────────────────────────────────

    def _emit(self, entry: WorkflowEntry, display: str) -> None:
        self.updates.put(StatusUpdate(entry.code, entry.file, display))

    def _poll(self, entry: WorkflowEntry) -> None:
        delay = self.startup_delay - (time.monotonic() - self._started_at)
        if delay > 0 and self._cancel.wait(delay):
            return

        ctx = self.context
        if not ctx.can_poll:
            self._emit(entry, NOT_AVAILABLE)
            return

        while not self._cancel.is_set():
            try:
                result = self.client.latest_run(ctx.owner, ctx.repo, entry.file,
                                                ctx.branch, ctx.token)
            except Exception:
                # thread boundary: latest_run reports failures as values
                logger.exception("Poller for %s crashed", entry.file)
                self._emit(entry, "err")
                return

            if self._cancel.is_set():
                return
            self._emit(entry, result.display)
            if result.terminal:
                logger.debug("%s: terminal status %s", entry.file, result.display)
                return
            if self._cancel.wait(self.poll_interval):
                return
