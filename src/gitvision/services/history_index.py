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
from typing import Iterable, Iterator, Optional

from ..config import Settings
from ..domain.errors import VcsQueryError
from ..domain.models import UNCOMMITTED_MESSAGE, Commit, HistoryEntry, make_label
from ..ports.host import HostPort, NullHost
from ..ports.vcs import VcsPort

logger = logging.getLogger(__name__)


class CommitHistoryIndex:
    """
    Immutable label -> Commit mapping, built once per session.

    Labels are "<sequence>) <subject>". The uncommitted-changes pseudo-commit
    always takes sequence 1; real commits follow newest-first. Merge commits
    are skipped (without consuming a number) unless `show_all_commits` is on.
    In `test_merged_commits` mode only merge commits are numbered.
    """

    def __init__(self, commits: Iterable[Commit]) -> None:
        self._by_label: dict[str, Commit] = {}
        self._by_hash: dict[str, Commit] = {}
        for commit in sorted(commits, key=lambda c: c.sequence):
            self._by_label[commit.label] = commit
            self._by_hash.setdefault(commit.hash, commit)
        uncommitted = self._by_hash.get(Commit.uncommitted().hash)
        if uncommitted is not None:
            self._by_label.setdefault(UNCOMMITTED_MESSAGE, uncommitted)

    @classmethod
    def build(
        cls,
        vcs: VcsPort,
        settings: Optional[Settings] = None,
        host: Optional[HostPort] = None,
    ) -> CommitHistoryIndex:
        """
        Query the full history and number it.

        Never raises for VCS problems: a failed or empty history yields an index
        holding only the uncommitted entry, and the host gets one warning.
        """
        settings = settings or Settings()
        host = host or NullHost()

        try:
            entries = vcs.history()
        except VcsQueryError as e:
            logger.warning("Reading commit history failed: %s", e)
            entries = []

        if not entries:
            host.warn("No git log found.")

        return cls(
            _number(
                entries,
                classify_merges=settings.test_merged_commits or not settings.show_all_commits,
                merges_only=settings.test_merged_commits,
            )
        )

    # --- lookups ------------------------------------------------------------

    def get(self, label: str) -> Optional[Commit]:
        return self._by_label.get(label)

    def label_for_hash(self, commit_hash: str) -> Optional[str]:
        commit = self._by_hash.get(commit_hash)
        return commit.label if commit is not None else None

    def resolve(self, labels: Iterable[str]) -> dict[str, str]:
        """Map each known label to its hash; unknown labels are logged and dropped."""
        resolved: dict[str, str] = {}
        for label in labels:
            commit = self._by_label.get(label)
            if commit is None:
                logger.info("Unknown commit label: %s", label)
                continue
            resolved[label] = commit.hash
        return resolved

    def labels(self) -> list[str]:
        """Numbered labels in display order (aliases excluded)."""
        return [c.label for c in self.commits()]

    def commits(self) -> list[Commit]:
        return sorted(self._by_hash.values(), key=lambda c: c.sequence)

    def __len__(self) -> int:
        return len(self._by_hash)

    def __contains__(self, label: object) -> bool:
        return label in self._by_label

    def __iter__(self) -> Iterator[Commit]:
        return iter(self.commits())


def _number(
    entries: list[HistoryEntry], *, classify_merges: bool, merges_only: bool
) -> list[Commit]:
    commits = [Commit.uncommitted(sequence=1)]
    sequence = 1
    skipped = 0

    for entry in entries:
        is_merge = classify_merges and len(entry.parents) > 1
        if is_merge != merges_only:
            skipped += 1
            continue
        sequence += 1
        commits.append(
            Commit(
                label=make_label(sequence, entry.message),
                hash=entry.hash,
                date=entry.date,
                sequence=sequence,
                message=entry.message,
                parents=entry.parents,
            )
        )

    if merges_only:
        logger.info("%d non-merge commits left out of the commit index (merge test mode).", skipped)
    else:
        logger.info(
            "%d merge commits removed from the commit index (disable with showAllCommits).",
            skipped,
        )
    return commits
