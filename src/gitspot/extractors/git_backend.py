"""Git history backend: streaming log and tree diffs via subprocess."""

from __future__ import annotations

import logging
import subprocess
import tempfile
from datetime import datetime, timezone
from typing import Iterator, Protocol

from gitspot.errors import DiffComputationError, RepositoryUnavailable
from gitspot.models import ChangeAction, ChangeEntry, LogEntry
from gitspot.utils.temporal import ensure_utc

logger = logging.getLogger(__name__)

COMMIT_SEP = "\x1e"  # record separator (ASCII RS)
FIELD_SEP = "\x1f"  # field separator (ASCII US)

GIT_LOG_FORMAT = "%x1f".join(
    [
        "%H",  # hash
        "%P",  # parent hashes
        "%ct",  # committer date, unix timestamp
        "%s",  # subject
    ]
) + "%x1e"

# Non-UTF-8 paths round-trip instead of collapsing into U+FFFD
PATH_ERRORS = "surrogateescape"

DIFF_TREE_ARGS = [
    "diff-tree",
    "-r",
    "-M",  # rename detection
    "--no-commit-id",
    "--name-status",
    "-z",
]


class HistoryBackend(Protocol):
    """What the hotspot engine needs from a version-control store."""

    def resolve(self, ref: str) -> str:
        """Resolve ``ref`` to a commit hash."""
        ...

    def iter_log(self, ref: str, since: datetime, until: datetime) -> Iterator[LogEntry]:
        """Stream commits reachable from ``ref`` committed in [since, until]."""
        ...

    def diff(self, from_rev: str | None, to_rev: str) -> list[ChangeEntry]:
        """Changes going from ``from_rev`` (None for the empty tree) to ``to_rev``."""
        ...


def parse_log_record(raw: str) -> LogEntry | None:
    """Parse one log record: 'hash US parents US timestamp US subject'."""
    raw = raw.strip("\n")
    if not raw:
        return None
    parts = raw.split(FIELD_SEP, 3)
    if len(parts) != 4:
        return None

    hash_, parents_str, timestamp_str, subject = parts
    hash_ = hash_.strip()
    try:
        timestamp = int(timestamp_str)
    except ValueError:
        return None
    if not hash_:
        return None

    return LogEntry(
        hash=hash_,
        committed_at=datetime.fromtimestamp(timestamp, tz=timezone.utc),
        subject=subject,
        parents=tuple(parents_str.split()),
    )


def parse_name_status(output: str) -> list[ChangeEntry]:
    """Parse ``git diff-tree --name-status -z`` output.

    Records are NUL-separated: ``status NUL path NUL`` for adds, modifies and
    deletes, ``R<score> NUL old NUL new NUL`` for renames (``C`` for copies).
    """
    tokens = output.split("\0")
    entries: list[ChangeEntry] = []
    i = 0
    while i < len(tokens):
        status = tokens[i].strip()
        i += 1
        if not status:
            continue
        kind = status[0]

        if kind in ("R", "C"):
            if i + 1 >= len(tokens) or not tokens[i] or not tokens[i + 1]:
                break
            old_path, new_path = tokens[i], tokens[i + 1]
            i += 2
            if kind == "R":
                entries.append(ChangeEntry(ChangeAction.RENAME, old_path, new_path))
            else:
                # A copy leaves its source untouched
                entries.append(ChangeEntry(ChangeAction.ADD, None, new_path))
            continue

        if i >= len(tokens) or not tokens[i]:
            break
        path = tokens[i]
        i += 1
        if kind == "A":
            entries.append(ChangeEntry(ChangeAction.ADD, None, path))
        elif kind in ("M", "T"):
            entries.append(ChangeEntry(ChangeAction.MODIFY, path, path))
        elif kind == "D":
            entries.append(ChangeEntry(ChangeAction.DELETE, path, None))
        else:
            logger.debug("Ignoring diff status %r for %s", status, path)

    return entries


class GitBackend:
    """HistoryBackend backed by the ``git`` command line."""

    def __init__(self, repo_path: str, git: str = "git", timeout: float = 120) -> None:
        self.repo_path = repo_path
        self.git = git
        self.timeout = timeout
        self._check_repository()

    def _command(self, *args: str) -> list[str]:
        return [self.git, "-C", self.repo_path, *args]

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        cmd = self._command(*args)
        logger.debug("Running %s", " ".join(cmd))
        return subprocess.run(
            cmd,
            capture_output=True,
            encoding="utf-8",
            errors=PATH_ERRORS,
            timeout=self.timeout,
        )

    def _check_repository(self) -> None:
        try:
            result = self._run("rev-parse", "--git-dir")
        except FileNotFoundError:
            raise RepositoryUnavailable(self.repo_path, "git executable not found") from None
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RepositoryUnavailable(self.repo_path, str(exc)) from exc
        if result.returncode != 0:
            raise RepositoryUnavailable(self.repo_path, result.stderr.strip() or "not a git repository")

    def resolve(self, ref: str) -> str:
        try:
            result = self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
        except subprocess.TimeoutExpired as exc:
            raise RepositoryUnavailable(self.repo_path, str(exc)) from exc
        if result.returncode != 0 or not result.stdout.strip():
            raise RepositoryUnavailable(self.repo_path, f"cannot resolve reference {ref!r}")
        return result.stdout.strip()

    def iter_log(self, ref: str, since: datetime, until: datetime) -> Iterator[LogEntry]:
        """Stream commits from git log with constant memory usage.

        Bounds are checked here rather than with ``--since``, which stops the
        walk at the first older commit and loses in-window commits behind it.
        """
        since = ensure_utc(since)
        until = ensure_utc(until)
        cmd = self._command("log", f"--format={GIT_LOG_FORMAT}", ref)
        logger.debug("Running %s", " ".join(cmd))

        # stderr goes to a file so a chatty git cannot fill a pipe and stall
        with tempfile.TemporaryFile() as stderr_file:
            with subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=stderr_file,
                encoding="utf-8",
                errors=PATH_ERRORS,
            ) as proc:
                assert proc.stdout is not None
                finished = False
                try:
                    buffer = ""
                    for chunk in iter(lambda: proc.stdout.read(8192), ""):
                        buffer += chunk
                        while COMMIT_SEP in buffer:
                            raw_commit, buffer = buffer.split(COMMIT_SEP, 1)
                            entry = parse_log_record(raw_commit)
                            if entry and since <= entry.committed_at <= until:
                                yield entry
                    finished = True
                finally:
                    if not finished:
                        proc.kill()

            if proc.returncode != 0:
                stderr_file.seek(0)
                stderr = stderr_file.read().decode("utf-8", errors="replace")
                raise RepositoryUnavailable(self.repo_path, f"git log failed: {stderr.strip()}")

    def diff(self, from_rev: str | None, to_rev: str) -> list[ChangeEntry]:
        if from_rev is None:
            args = [*DIFF_TREE_ARGS, "--root", to_rev]
        else:
            args = [*DIFF_TREE_ARGS, from_rev, to_rev]
        try:
            result = self._run(*args)
        except subprocess.TimeoutExpired as exc:
            raise DiffComputationError(from_rev, to_rev, f"timed out after {self.timeout}s") from exc
        if result.returncode != 0:
            raise DiffComputationError(from_rev, to_rev, result.stderr.strip() or "git diff-tree failed")
        return parse_name_status(result.stdout)
