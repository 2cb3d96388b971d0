"""Tests for the scm CLI."""

import json

import pytest

from scmstore import Repository
from scmstore.cli import main

from conftest import read_tree


@pytest.fixture
def committed(runner, work_tree):
    """Working tree with two commits: a.txt=hello, then a.txt=world + b.txt."""
    (work_tree / "a.txt").write_text("hello")
    r = runner.invoke(main, ["-C", str(work_tree), "commit", "-m", "first"])
    assert r.exit_code == 0, r.output
    (work_tree / "a.txt").write_text("world")
    (work_tree / "b.txt").write_text("x")
    r = runner.invoke(main, ["commit", "-C", str(work_tree), "-m", "second"])
    assert r.exit_code == 0, r.output
    return work_tree


class TestCommit:
    def test_prints_id(self, runner, work_tree):
        (work_tree / "a.txt").write_text("hello")
        r = runner.invoke(main, ["-C", str(work_tree), "commit", "-m", "msg"])
        assert r.exit_code == 0, r.output
        assert "Committed as 1" in r.output
        assert Repository(work_tree).manifest(1).message == "msg"

    def test_default_message(self, runner, work_tree):
        r = runner.invoke(main, ["-C", str(work_tree), "commit"])
        assert r.exit_code == 0, r.output
        assert Repository(work_tree).manifest(1).message == "commit"

    def test_root_from_env(self, runner, work_tree):
        r = runner.invoke(main, ["commit"], env={"SCM_ROOT": str(work_tree)})
        assert r.exit_code == 0, r.output
        assert (work_tree / ".scm" / "HEAD").read_text() == "1"

    def test_root_option_on_group_and_command(self, runner, work_tree):
        r = runner.invoke(main, ["--help"])
        assert "--root" in r.output and "SCM_ROOT" in r.output
        r = runner.invoke(main, ["-C", str(work_tree), "commit"])
        assert r.exit_code == 0, r.output
        r = runner.invoke(main, ["commit", "--root", str(work_tree)])
        assert r.exit_code == 0, r.output
        assert Repository(work_tree).read_head() == 2

    def test_default_root_is_cwd(self, runner, work_tree, monkeypatch):
        monkeypatch.chdir(work_tree)
        (work_tree / "a.txt").write_text("a")
        r = runner.invoke(main, ["commit"])
        assert r.exit_code == 0, r.output
        assert Repository(work_tree).manifest(1).paths == ["a.txt"]

    def test_exclude_option(self, runner, work_tree):
        (work_tree / "a.txt").write_text("a")
        (work_tree / "b.log").write_text("b")
        r = runner.invoke(main, ["-C", str(work_tree), "commit", "--exclude", "*.log"])
        assert r.exit_code == 0, r.output
        assert Repository(work_tree).manifest(1).paths == ["a.txt"]

    def test_corrupt_head(self, runner, work_tree):
        (work_tree / ".scm" / "commits").mkdir(parents=True)
        (work_tree / ".scm" / "HEAD").write_text("nope")
        r = runner.invoke(main, ["-C", str(work_tree), "commit"])
        assert r.exit_code == 1
        assert "Head pointer is not a commit id" in r.output

    def test_non_utf8_filename(self, runner, work_tree, undecodable_name):
        r = runner.invoke(main, ["-C", str(work_tree), "commit"])
        assert r.exit_code == 0, r.output
        assert "Committed as 1" in r.output
        assert Repository(work_tree).manifest(1).paths == [undecodable_name]

    def test_verbose_logs_to_stderr(self, runner, work_tree):
        (work_tree / "a.txt").write_text("a")
        r = runner.invoke(main, ["-v", "-C", str(work_tree), "commit"])
        assert r.exit_code == 0, r.output
        assert "Committed 1 (1 files)" in r.output
        assert "1 file(s), parent 0" in r.output


class TestRevert:
    def test_scenario(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "revert"])
        assert r.exit_code == 0, r.output
        assert "Reverted from 2 → 1" in r.output
        assert read_tree(committed) == {"a.txt": b"hello"}
        assert Repository(committed).read_head() == 1

    def test_empty_tree_fails(self, runner, work_tree):
        r = runner.invoke(main, ["-C", str(work_tree), "revert"])
        assert r.exit_code == 1
        assert "No previous commit" in r.output
        assert not (work_tree / ".scm").exists()
        assert Repository(work_tree).read_head() == 0

    def test_at_first_commit_fails(self, runner, work_tree):
        (work_tree / "a.txt").write_text("a")
        runner.invoke(main, ["-C", str(work_tree), "commit"])
        r = runner.invoke(main, ["-C", str(work_tree), "revert"])
        assert r.exit_code == 1
        assert "head is 1" in r.output

    def test_unknown_command(self, runner, work_tree):
        r = runner.invoke(main, ["-C", str(work_tree), "frobnicate"])
        assert r.exit_code != 0


class TestLog:
    def test_text(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "log"])
        assert r.exit_code == 0, r.output
        assert r.output.splitlines() == ["2  second", "1  first"]

    def test_json(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "log", "--format", "json"])
        assert r.exit_code == 0, r.output
        assert json.loads(r.output) == [
            {"id": 2, "parent": 1, "message": "second"},
            {"id": 1, "parent": 0, "message": "first"},
        ]

    def test_match(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "log", "--match", "fir*"])
        assert r.output.splitlines() == ["1  first"]

    def test_no_commits(self, runner, work_tree):
        r = runner.invoke(main, ["-C", str(work_tree), "log"])
        assert r.exit_code == 0
        assert r.output == ""


class TestShow:
    def test_head(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "show"])
        assert r.exit_code == 0, r.output
        lines = r.output.splitlines()
        assert lines[:3] == ["commit 2", "parent 1", "message second"]
        assert [line.split()[-1] for line in lines[3:]] == ["a.txt", "b.txt"]

    def test_json(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "show", "1", "--format", "json"])
        data = json.loads(r.output)
        assert data["id"] == 1
        assert [f["path"] for f in data["files"]] == ["a.txt"]
        assert len(data["files"][0]["digest"]) == 64

    def test_missing(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "show", "9"])
        assert r.exit_code == 1
        assert "Commit not found: 9" in r.output


class TestVerify:
    def test_ok(self, runner, committed):
        r = runner.invoke(main, ["-C", str(committed), "verify"])
        assert r.exit_code == 0, r.output
        assert "OK" in r.output

    def test_mismatch(self, runner, committed):
        (committed / ".scm" / "commits" / "1" / "tree" / "a.txt").write_text("evil")
        r = runner.invoke(main, ["-C", str(committed), "verify", "1"])
        assert r.exit_code == 1
        assert "mismatch: a.txt" in r.output
