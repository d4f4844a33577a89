"""Tests for workflow discovery and short codes."""

from pathlib import Path

from ciact.catalog import WorkflowCatalog, list_workflow_files, short_code, workflow_title
from ciact.config import DEFAULT_EXCLUSIONS


def test_short_code():
    assert short_code("build.yml") == "bui"
    assert short_code("CI.yaml") == "ci"
    assert short_code("Deploy-Prod.yml") == "dep"
    assert short_code(".yml") == ""


def test_distinct_prefixes(make_workflows):
    catalog = make_workflows(["build.yml", "bench.yml"])

    assert catalog.mapping == {"ben": "bench.yml", "bui": "build.yml"}
    assert [e.code for e in catalog.entries] == ["ben", "bui"]
    assert all(e.has_short_code for e in catalog.entries)
    assert catalog.dynamic == []


def test_collision_first_in_sort_order_wins(make_workflows):
    catalog = make_workflows(["lockfile.yml", "locked_deps.yml"])

    assert catalog.lookup("loc").file == "locked_deps.yml"
    assert [e.file for e in catalog.dynamic] == ["lockfile.yml"]

    dynamic = catalog.dynamic[0]
    assert dynamic.code == "lockfile.yml"
    assert dynamic.display_code == ""
    assert catalog.lookup("lockfile.yml") is dynamic


def test_coded_entries_come_before_dynamic(make_workflows):
    catalog = make_workflows(["che_two.yml", "ci.yml", "che_one.yml", "zeta.yaml"])

    assert [e.file for e in catalog.entries] == [
        "che_one.yml", "ci.yml", "zeta.yaml", "che_two.yml",
    ]
    codes = [e.code for e in catalog.short_coded]
    assert len(codes) == len(set(codes))


def test_dotfiles_are_not_workflows(make_workflows):
    catalog = make_workflows([".yml", "ci.yml"])

    assert [e.file for e in catalog.entries] == ["ci.yml"]


def test_discovery_is_deterministic(make_workflows):
    files = ["test.yml", "style.yaml", "tests-extra.yml", "build.yml"]
    first = make_workflows(files)
    second = WorkflowCatalog.discover(first.directory)

    assert first.entries == second.entries


def test_exclusions_and_non_workflow_files(make_workflows):
    catalog = make_workflows(["ci.yml", "danger.yml", "notes.txt"], exclusions=DEFAULT_EXCLUSIONS)

    assert [e.file for e in catalog.entries] == ["ci.yml"]


def test_discovery_is_not_recursive(make_workflows):
    catalog = make_workflows(["ci.yml"])
    nested = catalog.directory / "nested"
    nested.mkdir()
    (nested / "other.yml").write_text("name: nested\n")

    assert list_workflow_files(catalog.directory) == ["ci.yml"]


def test_missing_directory_is_empty(tmp_path):
    catalog = WorkflowCatalog.discover(tmp_path / "nope")

    assert len(catalog) == 0
    assert catalog.describe() == ["Available options:"]


def test_describe_lists_others(make_workflows):
    catalog = make_workflows(["che_one.yml", "che_two.yml"])

    assert catalog.describe() == [
        "Available options:",
        "  che => che_one.yml",
        "  (others) =>",
        "        che_two.yml",
    ]


def test_workflow_title(tmp_path):
    named = tmp_path / "build.yml"
    named.write_text("name: Build & Test\non:\n  push:\njobs: {}\n")
    unnamed = tmp_path / "lint.yaml"
    unnamed.write_text("on: push\njobs: {}\n")
    broken = tmp_path / "broken.yml"
    broken.write_text("name: [unclosed\n")

    assert workflow_title(named) == "Build & Test"
    assert workflow_title(unnamed) == "lint"
    assert workflow_title(broken) == "broken"
    assert workflow_title(Path(tmp_path / "missing.yml")) == "missing"
