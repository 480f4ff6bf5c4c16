"""Tests for the git history backend."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

from conftest import requires_git
from gitspot.errors import DiffComputationError, RepositoryUnavailable
from gitspot.extractors.git_backend import GitBackend, parse_log_record, parse_name_status
from gitspot.models import ChangeAction, ChangeEntry

BASE = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestParseNameStatus:
    def test_modify_add_delete(self):
        out = "M\0src/main.py\0A\0src/new.py\0D\0src/old.py\0"
        entries = parse_name_status(out)
        assert entries == [
            ChangeEntry(ChangeAction.MODIFY, "src/main.py", "src/main.py"),
            ChangeEntry(ChangeAction.ADD, None, "src/new.py"),
            ChangeEntry(ChangeAction.DELETE, "src/old.py", None),
        ]

    def test_rename(self):
        entries = parse_name_status("R100\0old.txt\0new.txt\0")
        assert len(entries) == 1
        assert entries[0].action is ChangeAction.RENAME
        assert entries[0].from_path == "old.txt"
        assert entries[0].to_path == "new.txt"
        assert entries[0].name == "old.txt"

    def test_partial_rename_score(self):
        entries = parse_name_status("R087\0a/b.py\0a/c.py\0M\0x.py\0")
        assert [e.action for e in entries] == [ChangeAction.RENAME, ChangeAction.MODIFY]

    def test_copy_is_add_of_target(self):
        entries = parse_name_status("C075\0src.py\0copy.py\0")
        assert entries == [ChangeEntry(ChangeAction.ADD, None, "copy.py")]

    def test_type_change_is_modify(self):
        entries = parse_name_status("T\0link\0")
        assert entries[0].action is ChangeAction.MODIFY

    def test_paths_with_spaces_and_tabs(self):
        entries = parse_name_status("M\0dir with space/a\tb.py\0")
        assert entries[0].name == "dir with space/a\tb.py"

    def test_unknown_status_ignored(self):
        assert parse_name_status("X\0weird\0M\0ok.py\0") == [
            ChangeEntry(ChangeAction.MODIFY, "ok.py", "ok.py")
        ]

    def test_empty_and_truncated(self):
        assert parse_name_status("") == []
        assert parse_name_status("M\0") == []
        assert parse_name_status("R100\0only-old\0") == []


class TestParseLogRecord:
    def test_basic_record(self):
        entry = parse_log_record("\nabc123\x1fp1 p2\x1f1767225600\x1ffix: thing")
        assert entry is not None
        assert entry.hash == "abc123"
        assert entry.parents == ("p1", "p2")
        assert entry.committed_at == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert entry.subject == "fix: thing"

    def test_root_commit(self):
        entry = parse_log_record("abc123\x1f\x1f1767225600\x1finitial")
        assert entry is not None
        assert entry.parents == ()

    def test_subject_with_separator_kept(self):
        entry = parse_log_record("abc\x1f\x1f1767225600\x1fa\x1fb")
        assert entry is not None
        assert entry.subject == "a\x1fb"

    def test_malformed(self):
        assert parse_log_record("") is None
        assert parse_log_record("abc\x1fp1") is None
        assert parse_log_record("abc\x1f\x1fnot-a-time\x1fsubject") is None


class TestChangeEntry:
    def test_requires_a_path(self):
        with pytest.raises(ValueError):
            ChangeEntry(ChangeAction.MODIFY)

    def test_name_prefers_from_path(self):
        assert ChangeEntry(ChangeAction.RENAME, "a", "b").name == "a"
        assert ChangeEntry(ChangeAction.ADD, None, "b").name == "b"


class TestGitBackendErrors:
    def test_missing_git_executable(self, tmp_path):
        with pytest.raises(RepositoryUnavailable, match="git executable not found"):
            GitBackend(str(tmp_path), git="git-does-not-exist-xyz")

    @requires_git
    def test_not_a_repository(self, tmp_path):
        with pytest.raises(RepositoryUnavailable):
            GitBackend(str(tmp_path / "missing"))

    @requires_git
    def test_unresolvable_ref(self, git_repo):
        git_repo({"a.txt": "a\n"}, BASE, "init")
        backend = GitBackend(str(git_repo.path))
        with pytest.raises(RepositoryUnavailable, match="cannot resolve"):
            backend.resolve("no-such-branch")

    @requires_git
    def test_empty_repository_has_no_head(self, git_repo):
        backend = GitBackend(str(git_repo.path))
        with pytest.raises(RepositoryUnavailable):
            backend.resolve("HEAD")

    @requires_git
    def test_diff_unknown_revision(self, git_repo):
        head = git_repo({"a.txt": "a\n"}, BASE, "init")
        backend = GitBackend(str(git_repo.path))
        with pytest.raises(DiffComputationError) as excinfo:
            backend.diff("0" * 40, head)
        assert excinfo.value.to_rev == head


@requires_git
class TestGitBackendRepository:
    def test_log_within_bounds(self, git_repo):
        first = git_repo({"a.txt": "a\n"}, BASE, "first")
        second = git_repo({"b.txt": "b\n"}, BASE + timedelta(days=10), "second\n\nbody")
        backend = GitBackend(str(git_repo.path))
        head = backend.resolve("HEAD")
        assert head == second

        entries = list(backend.iter_log(head, BASE - timedelta(days=1), BASE + timedelta(days=20)))
        assert [e.hash for e in entries] == [second, first]
        assert entries[0].subject == "second"
        assert entries[0].parents == (first,)
        assert entries[0].committed_at == BASE + timedelta(days=10)
        assert entries[1].parents == ()

    def test_diff_against_parent_and_root(self, git_repo):
        first = git_repo({"a.txt": "a\n", "b.txt": "b\n"}, BASE, "first")
        second = git_repo({"a.txt": "changed\n"}, BASE + timedelta(days=1), "second", remove=("b.txt",))
        backend = GitBackend(str(git_repo.path))

        root = backend.diff(None, first)
        assert {(e.action, e.name) for e in root} == {
            (ChangeAction.ADD, "a.txt"),
            (ChangeAction.ADD, "b.txt"),
        }

        incremental = backend.diff(first, second)
        assert {(e.action, e.name) for e in incremental} == {
            (ChangeAction.MODIFY, "a.txt"),
            (ChangeAction.DELETE, "b.txt"),
        }

    def test_rename_detected(self, git_repo):
        first = git_repo({"old.txt": "hello world\n"}, BASE, "add")
        second = git_repo({}, BASE + timedelta(days=1), "rename", moves=(("old.txt", "new.txt"),))
        backend = GitBackend(str(git_repo.path))
        entries = backend.diff(first, second)
        assert entries == [ChangeEntry(ChangeAction.RENAME, "old.txt", "new.txt")]

    def test_log_keeps_commits_behind_skewed_ancestor(self, git_repo):
        first = git_repo({"a.txt": "a\n"}, BASE + timedelta(days=10), "first")
        git_repo({"a.txt": "b\n"}, BASE - timedelta(days=50), "skewed clock")
        third = git_repo({"a.txt": "c\n"}, BASE + timedelta(days=20), "third")
        backend = GitBackend(str(git_repo.path))

        entries = list(backend.iter_log("HEAD", BASE, BASE + timedelta(days=30)))
        assert [e.hash for e in entries] == [third, first]

    def test_log_bounds_applied_by_backend(self, git_repo):
        git_repo({"a.txt": "a\n"}, BASE, "old")
        middle = git_repo({"a.txt": "b\n"}, BASE + timedelta(days=10), "middle")
        git_repo({"a.txt": "c\n"}, BASE + timedelta(days=20), "new")
        backend = GitBackend(str(git_repo.path))

        entries = list(
            backend.iter_log("HEAD", BASE + timedelta(days=5), BASE + timedelta(days=15))
        )
        assert [e.hash for e in entries] == [middle]

    def test_log_closed_early(self, git_repo):
        for day in range(5):
            git_repo({"a.txt": f"{day}\n"}, BASE + timedelta(days=day), f"commit {day}")
        backend = GitBackend(str(git_repo.path))

        log = backend.iter_log("HEAD", BASE, BASE + timedelta(days=10))
        newest = next(log)
        log.close()
        assert newest.hash == backend.resolve("HEAD")
        assert len(list(backend.iter_log("HEAD", BASE, BASE + timedelta(days=10)))) == 5

    def test_log_unknown_ref(self, git_repo):
        git_repo({"a.txt": "a\n"}, BASE, "init")
        backend = GitBackend(str(git_repo.path))
        with pytest.raises(RepositoryUnavailable, match="git log failed"):
            list(backend.iter_log("0" * 40, BASE, BASE + timedelta(days=1)))

    @pytest.mark.skipif(sys.platform == "darwin", reason="filesystem requires UTF-8 names")
    def test_non_utf8_paths_stay_distinct(self, git_repo):
        latin = os.fsdecode(b"caf\xe9.txt")
        other = os.fsdecode(b"caf\xe8.txt")
        first = git_repo({"a.txt": "a\n"}, BASE, "first")
        second = git_repo({latin: "1\n", other: "2\n"}, BASE + timedelta(days=1), "latin-1 names")
        backend = GitBackend(str(git_repo.path))

        names = {e.name for e in backend.diff(first, second)}
        assert names == {latin, other}
        assert {os.fsencode(name) for name in names} == {b"caf\xe9.txt", b"caf\xe8.txt"}
