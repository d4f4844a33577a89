#!/usr/bin/env python3
"""
catalog - Workflow discovery and short-code mapping.

Every workflow file under .github/workflows gets a three-letter short code
taken from the start of its filename stem. Codes are handed out
first-come-wins over the sorted filenames; a file whose code is already
taken becomes a "dynamic" entry that can only be chosen by its full name.

The scheme is deliberately simple: ``locked_deps.yml`` and ``lockfile.yml``
collide on ``loc``, and only the first one keeps it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger(__name__)

WORKFLOW_SUFFIXES = (".yml", ".yaml")
CODE_LENGTH = 3


@dataclass(frozen=True)
class WorkflowEntry:
    code: str
    file: str
    has_short_code: bool

    @property
    def display_code(self) -> str:
        return self.code if self.has_short_code else ""


def workflows_dir(repo_path: Path) -> Path:
    return repo_path / ".github" / "workflows"


def _stem(filename: str) -> str:
    for suffix in WORKFLOW_SUFFIXES:
        if filename.endswith(suffix):
            return filename[: -len(suffix)]
    return filename


def short_code(filename: str) -> str:
    """First three letters of the stem, lower-cased ('' if the stem is empty)."""
    return _stem(filename)[:CODE_LENGTH].lower()


def list_workflow_files(directory: Path, exclusions: Iterable[str] = ()) -> List[str]:
    """Sorted workflow basenames directly under directory, minus exclusions."""
    if not directory.is_dir():
        return []
    names = {
        p.name for p in directory.iterdir()
        if p.suffix in WORKFLOW_SUFFIXES and p.is_file()
    }
    return sorted(names - set(exclusions))


class WorkflowCatalog:
    """Ordered workflow entries: short-coded first, dynamic after."""

    def __init__(self, directory: Path, entries: List[WorkflowEntry]):
        self.directory = directory
        self.entries = entries
        self._by_code: Dict[str, WorkflowEntry] = {e.code: e for e in entries}

    @classmethod
    def discover(cls, directory: Path, exclusions: Iterable[str] = ()) -> "WorkflowCatalog":
        files = list_workflow_files(directory, exclusions)

        coded: Dict[str, str] = {}
        for fname in files:
            code = short_code(fname)
            if not code:
                continue
            coded.setdefault(code, fname)

        taken = set(coded.values())
        entries = [WorkflowEntry(code, fname, True) for code, fname in coded.items()]
        entries += [WorkflowEntry(fname, fname, False) for fname in files if fname not in taken]

        logger.debug("Catalog %s: %d coded, %d dynamic",
                     directory, len(coded), len(entries) - len(coded))
        return cls(directory, entries)

    @property
    def short_coded(self) -> List[WorkflowEntry]:
        return [e for e in self.entries if e.has_short_code]

    @property
    def dynamic(self) -> List[WorkflowEntry]:
        return [e for e in self.entries if not e.has_short_code]

    @property
    def mapping(self) -> Dict[str, str]:
        return {e.code: e.file for e in self.entries}

    def lookup(self, code: str) -> Optional[WorkflowEntry]:
        return self._by_code.get(code)

    def path_for(self, filename: str) -> Path:
        return self.directory / filename

    def describe(self) -> List[str]:
        """Option listing used when a selection cannot be resolved."""
        lines = ["Available options:"]
        for e in self.short_coded:
            lines.append(f"  {e.code:<3} => {e.file}")
        if self.dynamic:
            lines.append("  (others) =>")
            lines.extend(f"        {e.file}" for e in self.dynamic)
        return lines

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


def workflow_title(path: Path) -> str:
    """The workflow's top-level ``name:``, or its filename stem."""
    try:
        data = YAML(typ="safe").load(path.read_text(encoding="utf-8", errors="replace"))
    except (OSError, YAMLError) as e:
        logger.debug("Could not read workflow name from %s: %s", path, e)
        return _stem(path.name)
    if isinstance(data, dict):
        name = data.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return _stem(path.name)
