#!/usr/bin/env python3
"""
menu - Live-updating workflow selection menu.

Layout (the prompt is always the last line):

     1) bui => build.yml            ✅ (completed/success)
     2) ben => bench.yml            👟 (in_progress)
     3) q   => (quit)
    (Fetching latest GHA status for branch main - ...)
    Enter number or code (or 'q' to quit): _

Status updates arrive on a queue while a reader thread waits for the
user's line. On a terminal each update rewrites its own row in place; on a
pipe or file it is appended as ``status <code>: <display>`` instead.
The menu is the only writer to the terminal.
"""

from __future__ import annotations

import io
import logging
import os
import queue
import select
import sys
import threading
from enum import Enum
from typing import Dict, List, Optional, TextIO, Tuple

from ciact.catalog import WorkflowCatalog
from ciact.config import DEFAULT_GRACE_PERIOD
from ciact.poller import PollSupervisor, StatusUpdate

logger = logging.getLogger(__name__)

QUIT_CODE = "q"
PLACEHOLDER = "[…]"
PROMPT = "Enter number or code (or 'q' to quit): "


# ─────────────────────────────────────────────────────────────
# ANSI helpers
# ─────────────────────────────────────────────────────────────

def _c(code: str, text: str, stream: Optional[TextIO] = None) -> str:
    stream = stream if stream is not None else sys.stdout
    try:
        tty = stream.isatty()
    except (AttributeError, ValueError):
        tty = False
    if not tty:
        return text
    return f"\033[{code}m{text}\033[0m"

def red(t, stream=None):    return _c("31", t, stream)
def yellow(t, stream=None): return _c("33", t, stream)
def bold(t, stream=None):   return _c("1", t, stream)


# ─────────────────────────────────────────────────────────────
# Terminal
# ─────────────────────────────────────────────────────────────

class Terminal:
    """Output sink the menu draws on."""

    interactive = False

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def write(self, text: str) -> None:
        self.stream.write(text)

    def flush(self) -> None:
        self.stream.flush()

    def move_up(self, rows: int) -> None:
        raise NotImplementedError

    def move_down(self, rows: int) -> None:
        raise NotImplementedError

    def clear_line(self) -> None:
        raise NotImplementedError


class AnsiTerminal(Terminal):
    interactive = True

    def move_up(self, rows: int) -> None:
        if rows > 0:
            self.write(f"\033[{rows}A\r")

    def move_down(self, rows: int) -> None:
        if rows > 0:
            self.write(f"\033[{rows}B\r")

    def clear_line(self) -> None:
        self.write("\r\033[2K")


class PlainTerminal(Terminal):
    """Pipes and files: cursor movement is a no-op."""

    def move_up(self, rows: int) -> None:
        pass

    def move_down(self, rows: int) -> None:
        pass

    def clear_line(self) -> None:
        pass


def terminal_for(stream: Optional[TextIO] = None) -> Terminal:
    stream = stream if stream is not None else sys.stdout
    try:
        tty = stream.isatty()
    except (AttributeError, ValueError):
        tty = False
    return AnsiTerminal(stream) if tty else PlainTerminal(stream)


# ─────────────────────────────────────────────────────────────
# Input
# ─────────────────────────────────────────────────────────────

def _selectable(stream) -> bool:
    if os.name == "nt":
        return False
    try:
        stream.fileno()
    except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
        return False
    return True


class InputReader:
    """Reads exactly one line on a background thread.

    The result lands on ``lines``: the line without its newline, or None at
    end of input. On POSIX the thread waits in ``select`` so ``stop()`` can
    end it; elsewhere it may stay blocked in ``readline`` as a daemon.
    """

    def __init__(self, stream: Optional[TextIO] = None, poll: float = 0.1):
        self.stream = stream if stream is not None else sys.stdin
        self.poll = poll
        self.lines: "queue.Queue[Optional[str]]" = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._read, name="ciact-input", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 0.5) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _wait_readable(self) -> bool:
        while not self._stop.is_set():
            ready, _, _ = select.select([self.stream], [], [], self.poll)
            if ready:
                return True
        return False

    def _read(self) -> None:
        try:
            if _selectable(self.stream) and not self._wait_readable():
                return
            line = self.stream.readline()
        except (OSError, ValueError) as e:
            logger.debug("stdin read failed: %s", e)
            line = ""
        self.lines.put(line.rstrip("\r\n") if line else None)


# ─────────────────────────────────────────────────────────────
# Menu
# ─────────────────────────────────────────────────────────────

class MenuPhase(Enum):
    RENDERING = "rendering"
    AWAITING_SELECTION = "awaiting-selection"
    CLOSED = "closed"


class LiveMenu:
    def __init__(self, catalog: WorkflowCatalog, terminal: Optional[Terminal] = None,
                 input_stream: Optional[TextIO] = None, runner: str = "act",
                 idle_wait: float = 0.05):
        self.catalog = catalog
        self.term = terminal if terminal is not None else terminal_for()
        self.input_stream = input_stream
        self.runner = runner
        self.idle_wait = idle_wait
        self.phase = MenuPhase.RENDERING

        # (key, label, shown code); the quit row has no key
        self.options: List[Tuple[Optional[str], str, str]] = [
            (e.code, e.file, e.display_code) for e in catalog.entries
        ]
        self.options.append((None, "(quit)", QUIT_CODE))
        self._row: Dict[str, int] = {
            key: i for i, (key, _, _) in enumerate(self.options) if key is not None
        }
        self.statuses: Dict[str, str] = {}

    def status_of(self, code: str) -> str:
        return self.statuses.get(code, PLACEHOLDER)

    def format_row(self, idx: int) -> str:
        key, label, shown = self.options[idx]
        status = "" if key is None else self.status_of(key)
        return f"{idx + 1:2d}) {shown:<3} => {label:<20} {status}".rstrip()

    def paint(self, branch: Optional[str] = None) -> None:
        self.term.write(f"Select a workflow to run with '{self.runner}':\n")
        for idx in range(len(self.options)):
            self.term.write(self.format_row(idx) + "\n")
        self.term.write(
            f"(Fetching latest GHA status for branch {branch or 'n/a'}"
            " - you can type your choice and press Enter)\n"
        )
        self.term.write(PROMPT)
        self.term.flush()

    def apply(self, update: StatusUpdate) -> None:
        self.statuses[update.code] = update.display
        idx = self._row.get(update.code)

        if self.term.interactive and idx is not None:
            # rows below the target, plus the hint line, plus the prompt line
            up = len(self.options) - idx + 1
            self.term.move_up(up)
            self.term.clear_line()
            self.term.write(self.format_row(idx) + "\n")
            self.term.move_down(up - 1)
            self.term.write(PROMPT)
        else:
            self.term.write(f"status {update.code}: {update.display}\n")
        self.term.flush()

    def run(self, supervisor: Optional[PollSupervisor] = None, branch: Optional[str] = None,
            grace: float = DEFAULT_GRACE_PERIOD) -> Optional[str]:
        """Show the menu until a line is entered; None means end of input."""
        updates = supervisor.updates if supervisor is not None else queue.Queue()
        reader = InputReader(self.input_stream)
        try:
            self.paint(branch)
            self.phase = MenuPhase.AWAITING_SELECTION
            reader.start()
            if supervisor is not None:
                supervisor.start()
            return self._await_selection(reader, updates)
        finally:
            self.phase = MenuPhase.CLOSED
            reader.stop()
            if supervisor is not None:
                supervisor.stop(grace)

    def _await_selection(self, reader: InputReader,
                         updates: "queue.Queue[StatusUpdate]") -> Optional[str]:
        while True:
            try:
                return reader.lines.get_nowait()
            except queue.Empty:
                pass
            if not reader.is_alive() and reader.lines.empty():
                # reader gave up without producing anything
                return None

            try:
                update = updates.get(timeout=self.idle_wait)
            except queue.Empty:
                continue
            self.apply(update)
