import logging
import os
import shutil
import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from gitvision.config import Settings
from gitvision.domain import HistoryEntry, RepositoryContext, VcsQueryError
from gitvision.ports.vcs import VcsPort


class FakeVcs(VcsPort):
    """In-memory VcsPort; `fail` names the methods that should raise VcsQueryError."""

    def __init__(
        self,
        *,
        history=None,
        tracked=(),
        changed=None,
        introduced=None,
        working=(),
        renamed=None,
        blame=None,
        head="",
        roots=(),
        ignored=(),
        ranges=None,
        fail=(),
    ):
        self._history = list(history or [])
        self._tracked = list(tracked)
        self._changed = dict(changed or {})
        self._introduced = dict(introduced or {})
        self.working = list(working)
        self._renamed = dict(renamed or {})
        self.blame_output = dict(blame or {})
        self._head = head
        self._roots = list(roots)
        self._ignored = set(ignored)
        self._ranges = dict(ranges or {})
        self.fail = set(fail)
        self.calls = []

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise VcsQueryError(f"{name} failed")

    def history(self):
        self._call("history")
        return list(self._history)

    def root_commits(self):
        self._call("root_commits")
        return list(self._roots)

    def head(self):
        self._call("head")
        return self._head

    def tracked_files(self):
        self._call("tracked_files")
        return list(self._tracked)

    def changed_files(self, commit):
        self._call("changed_files", commit)
        return list(self._changed.get(commit, []))

    def introduced_files(self, commit):
        self._call("introduced_files", commit)
        return list(self._introduced.get(commit, []))

    def working_tree_changes(self, path=None):
        self._call("working_tree_changes", path)
        if path is None:
            return list(self.working)
        return [p for p in self.working if p == path]

    def renamed_files(self, commit, similarity):
        self._call("renamed_files", commit, similarity)
        return list(self._renamed.get(commit, []))

    def blame(self, path, include_whitespace):
        self._call("blame", path, include_whitespace)
        if path not in self.blame_output:
            raise VcsQueryError(f"no such path {path}")
        return list(self.blame_output[path])

    def check_ignore(self, path):
        self._call("check_ignore", path)
        return path in self._ignored

    def commits_in_range(self, start, end):
        self._call("commits_in_range", start, end)
        return list(self._ranges.get((start, end), []))


def blame_lines(*hashes):
    """Fake `git blame -l` output: one line per hash."""
    return [f"{h} (Someone 2024-01-01 00:00:00 +0000 {i + 1}) line {i}" for i, h in enumerate(hashes)]


def entry(commit_hash, message, parents=("p",), date="2024-01-01T00:00:00+00:00"):
    return HistoryEntry(hash=commit_hash, parents=tuple(parents), date=date, message=message)


class RecordingHost:
    def __init__(self, answer=True):
        self.answer = answer
        self.questions = []
        self.warnings = []
        self.infos = []
        self.notifications = 0

    def confirm(self, message):
        self.questions.append(message)
        return self.answer

    def warn(self, message):
        self.warnings.append(message)

    def info(self, message):
        self.infos.append(message)

    def highlights_changed(self):
        self.notifications += 1


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Undo root-logger reconfiguration (e.g. `--verbose` under CliRunner) so
    handlers bound to a closed captured stream do not leak into later tests."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_vcs():
    return FakeVcs


@pytest.fixture
def helpers():
    return SimpleNamespace(blame_lines=blame_lines, entry=entry, RecordingHost=RecordingHost)


@pytest.fixture
def make_context(tmp_path):
    def _make(vcs, settings=None, files=()):
        for rel in files:
            p = tmp_path / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text("x\n")
        return RepositoryContext(tmp_path, vcs, settings or Settings())

    return _make


# ------------------------------
# Real git repositories
# ------------------------------

_GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test Author",
    "GIT_AUTHOR_EMAIL": "author@example.com",
    "GIT_COMMITTER_NAME": "Test Author",
    "GIT_COMMITTER_EMAIL": "author@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(root: Path, *args: str, when: int = 0) -> str:
    env = dict(os.environ, **_GIT_ENV)
    env["HOME"] = str(root)
    if when:
        stamp = f"{1700000000 + when * 60} +0000"
        env["GIT_AUTHOR_DATE"] = stamp
        env["GIT_COMMITTER_DATE"] = stamp
    proc = subprocess.run(
        ["git", "-C", str(root), *args],
        capture_output=True,
        text=True,
        env=env,
        check=True,
    )
    return proc.stdout.strip()


def commit_all(root: Path, message: str, when: int) -> str:
    git(root, "add", "-A")
    git(root, "commit", "-q", "--no-gpg-sign", "-m", message, when=when)
    return git(root, "rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path):
    """
    Three linear commits on `main`:
      C1 (root): README.md, b.txt (6 lines)
      C2:        a.txt (3 lines)
      C3:        b.txt line 5 rewritten
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    root = tmp_path / "repo"
    root.mkdir()
    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", "refs/heads/main")

    (root / "README.md").write_text("hello\n")
    (root / "b.txt").write_text("".join(f"b{i}\n" for i in range(6)))
    c1 = commit_all(root, "C1", when=1)

    (root / "a.txt").write_text("a0\na1\na2\n")
    c2 = commit_all(root, "C2", when=2)

    lines = (root / "b.txt").read_text().splitlines()
    lines[5] = "b5 changed"
    (root / "b.txt").write_text("\n".join(lines) + "\n")
    c3 = commit_all(root, "C3", when=3)

    return SimpleNamespace(
        root=root,
        hashes={"C1": c1, "C2": c2, "C3": c3},
        git=lambda *args, when=0: git(root, *args, when=when),
        commit_all=lambda message, when: commit_all(root, message, when),
    )
