# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from ...domain.errors import VcsQueryError
from ...domain.models import HistoryEntry
from ...ports.vcs import VcsPort

logger = logging.getLogger(__name__)

# Field / record separators for `git log --format`; never present in subjects.
_FS = "\x1f"
_RS = "\x1e"
_LOG_FORMAT = f"--format=%H{_FS}%P{_FS}%aI{_FS}%s{_RS}"


class GitCLI(VcsPort):
    """
    VcsPort backed by the `git` executable.

    - Every query is one short-lived subprocess run from the repository root.
    - Non-zero exits, timeouts and a missing binary all surface as VcsQueryError.
    - Name lists use `-z` so paths with spaces or non-ASCII characters survive.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        timeout: Optional[float] = 30.0,
        executable: str = "git",
    ) -> None:
        self._root = str(Path(root))
        self._timeout = timeout
        self._git = executable

    # --- plumbing -----------------------------------------------------------

    def _run(self, *args: str, ok_codes: tuple[int, ...] = (0,)) -> subprocess.CompletedProcess:
        cmd = (self._git, "-C", self._root, *args)
        logger.debug("git %s", " ".join(args))
        try:
            raw = subprocess.run(cmd, capture_output=True, timeout=self._timeout)
        except FileNotFoundError as e:
            raise VcsQueryError(f"git executable not found: {self._git}", command=cmd) from e
        except subprocess.TimeoutExpired as e:
            raise VcsQueryError(
                f"git {args[0]} timed out after {self._timeout}s", command=cmd
            ) from e

        # bytes in, so a lone '\r' inside a line survives decoding
        proc = subprocess.CompletedProcess(
            cmd,
            raw.returncode,
            (raw.stdout or b"").decode("utf-8", errors="replace"),
            (raw.stderr or b"").decode("utf-8", errors="replace"),
        )
        if proc.returncode not in ok_codes:
            stderr = proc.stderr.strip()
            raise VcsQueryError(
                f"git {args[0]} exited with {proc.returncode}: {stderr}",
                command=cmd,
                stderr=stderr,
            )
        return proc

    def _names(self, *args: str) -> list[str]:
        out = self._run(*args).stdout
        return [name for name in out.split("\0") if name.strip()]

    # --- VcsPort ------------------------------------------------------------

    def history(self) -> list[HistoryEntry]:
        out = self._run("log", _LOG_FORMAT).stdout
        entries: list[HistoryEntry] = []
        for record in out.split(_RS):
            record = record.strip("\n")
            if not record:
                continue
            fields = record.split(_FS)
            if len(fields) != 4:
                logger.debug("Skipping malformed log record: %r", record)
                continue
            commit_hash, parents, date, message = fields
            entries.append(
                HistoryEntry(
                    hash=commit_hash.strip(),
                    parents=tuple(parents.split()),
                    date=date,
                    message=message,
                )
            )
        return entries

    def root_commits(self) -> list[str]:
        out = self._run("rev-list", "--max-parents=0", "HEAD").stdout
        return out.split()

    def toplevel(self) -> Path:
        """Absolute path of the working tree root (not part of VcsPort)."""
        return Path(self._run("rev-parse", "--show-toplevel").stdout.strip())

    def head(self) -> str:
        return self._run("rev-parse", "HEAD").stdout.strip()

    def tracked_files(self) -> list[str]:
        return self._names("ls-files", "-z")

    def changed_files(self, commit: str) -> list[str]:
        return self._names("diff", "--name-only", "-z", f"{commit}~..{commit}")

    def introduced_files(self, commit: str) -> list[str]:
        return self._names(
            "diff-tree", "--root", "--no-commit-id", "--name-only", "-r", "-z", commit
        )

    def working_tree_changes(self, path: Optional[str] = None) -> list[str]:
        args = ["diff", "--name-only", "-z", "HEAD"]
        if path is not None:
            args += ["--", path]
        return self._names(*args)

    def renamed_files(self, commit: str, similarity: int) -> list[str]:
        return self._names(
            "diff", "--name-only", "-z", f"--find-renames={similarity}%", f"{commit}~..HEAD"
        )

    def blame(self, path: str, include_whitespace: bool) -> list[str]:
        args = ["blame", "-l", "--root"]
        if not include_whitespace:
            args.append("-w")
        args += ["--", path]
        # records end in "\n" only; line content may hold other line breaks
        lines = self._run(*args).stdout.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return lines

    def check_ignore(self, path: str) -> bool:
        # exit 0: ignored, 1: not ignored, anything else is an error
        proc = self._run("check-ignore", "-q", "--", path, ok_codes=(0, 1))
        return proc.returncode == 0

    def commits_in_range(self, start: str, end: str) -> list[str]:
        return self._run("rev-list", f"{start}..{end}").stdout.split()
