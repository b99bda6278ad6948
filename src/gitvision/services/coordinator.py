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

import enum
import logging
import threading
from pathlib import Path
from typing import Any, Iterable, Optional

from ..config import SETTING_KEYS, Settings
from ..domain.context import RepositoryContext
from ..domain.errors import VcsQueryError
from ..domain.models import SENTINEL_HASH, UNCOMMITTED_MESSAGE
from ..ports.host import HostPort, NullHost, ProgressSink
from .blame_service import BlameAttributionEngine
from .changeset_resolver import ChangeSetResolver
from .highlight_store import HighlightDataStore
from .history_index import CommitHistoryIndex
from .ignore_filter import IgnoreFilter
from .scheduler import ConcurrencyScheduler

logger = logging.getLogger(__name__)


class PassState(enum.Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    ATTRIBUTING = "attributing"


class AttributionCoordinator:
    """
    Orchestrates an attribution session for one repository:

      labels -> hashes (CommitHistoryIndex)
             -> changed files (ChangeSetResolver + IgnoreFilter + existence)
             -> line indices (BlameAttributionEngine on ConcurrencyScheduler)
             -> HighlightDataStore -> host.highlights_changed()

    Owns the watched labels / hashes / files. Full passes and incremental
    file-save updates are serialised by one lock, so a save never races a pass
    touching the same file. The history index is built once and kept across
    `clear()`.
    """

    def __init__(
        self,
        context: RepositoryContext,
        host: Optional[HostPort] = None,
        *,
        index: Optional[CommitHistoryIndex] = None,
    ) -> None:
        self._ctx = context
        self._host = host or NullHost()
        self._index = (
            index
            if index is not None
            else CommitHistoryIndex.build(context.vcs, context.settings, self._host)
        )
        self._ignore = IgnoreFilter(context.settings.ignore_patterns)
        self._resolver = ChangeSetResolver(context)
        self._blame = BlameAttributionEngine(context.vcs)
        self._scheduler = ConcurrencyScheduler(context.settings.max_workers)
        self._store = HighlightDataStore()

        self._lock = threading.RLock()
        self._cancel = threading.Event()
        self._state = PassState.IDLE
        self._labels: dict[str, str] = {}
        self._hashes: set[str] = set()
        self._files: set[str] = set()
        self._sibling_notice_shown = False

    # --- read side ----------------------------------------------------------

    @property
    def context(self) -> RepositoryContext:
        return self._ctx

    @property
    def settings(self) -> Settings:
        return self._ctx.settings

    @property
    def index(self) -> CommitHistoryIndex:
        return self._index

    @property
    def state(self) -> PassState:
        return self._state

    @property
    def watched_labels(self) -> list[str]:
        with self._lock:
            return list(self._labels)

    @property
    def watched_hashes(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._hashes)

    @property
    def watched_files(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._files)

    def get_highlight_data(self) -> dict[str, list[int]]:
        return self._store.data()

    def get_highlight_files(self) -> dict[str, int]:
        return self._store.files()

    def is_watched(self, path: str | Path) -> bool:
        rel = self._ctx.relative(path)
        return rel is not None and self._store.is_watched(str(self._ctx.absolute(rel)))

    # --- events -------------------------------------------------------------

    def add_commits(
        self, labels: Iterable[str], progress: Optional[ProgressSink] = None
    ) -> None:
        """Watch `labels` (display labels or the uncommitted alias) and run a full pass."""
        labels = list(labels)
        with self._lock:
            self._cancel.clear()
            self._state = PassState.RESOLVING
            try:
                if self.settings.always_show_uncommitted and not self._wants_uncommitted(labels):
                    labels.append(UNCOMMITTED_MESSAGE)
                    logger.debug("Added uncommitted changes to the commit list")
                logger.debug("Adding commits: %s", ", ".join(labels))

                new_hashes = self._watch_labels(labels)
                if self.settings.link_merged_commits:
                    new_hashes |= self._linked_commits(new_hashes)
                self._hashes |= new_hashes

                if self._collect_files(new_hashes):
                    self._state = PassState.ATTRIBUTING
                    self._attribute(self._files, progress)
            finally:
                self._state = PassState.IDLE
        self._host.highlights_changed()

    def remove_commits(
        self, labels: Iterable[str], progress: Optional[ProgressSink] = None
    ) -> None:
        """Stop watching `labels` and rebuild highlights for whatever remains."""
        with self._lock:
            removed = {self._canonical(label) for label in labels}
            remaining = [label for label in self._labels if label not in removed]
            self.clear()
            if remaining:
                self.add_commits(remaining, progress)

    def add_branch(
        self, base: str = "main", progress: Optional[ProgressSink] = None
    ) -> list[str]:
        """Watch every indexed commit on `base..HEAD`; returns the labels added."""
        try:
            hashes = self._ctx.vcs.commits_in_range(base, "HEAD")
        except VcsQueryError as e:
            logger.warning("Error getting branch commits for %s..HEAD: %s", base, e)
            self._host.warn("Error getting branch commits")
            return []

        labels = [
            label
            for label in (self._index.label_for_hash(h) for h in hashes)
            if label is not None
        ]
        logger.debug("Commits to be added from %s..HEAD: %s", base, labels)
        if labels:
            self.add_commits(labels, progress)
        return labels

    def refresh(self, progress: Optional[ProgressSink] = None) -> None:
        """Re-attribute every watched file against the current watched hashes."""
        with self._lock:
            self._cancel.clear()
            self._state = PassState.ATTRIBUTING
            try:
                self._attribute(self._files, progress)
            finally:
                self._state = PassState.IDLE
        self._host.highlights_changed()

    def on_file_saved(self, path: str | Path) -> bool:
        """
        Incrementally re-attribute one saved file.

        Returns:
            True when highlights were updated (and the host notified).
        """
        rel = self._ctx.relative(path)
        if rel is None or not self._ctx.is_tracked(rel):
            return False

        always_show = self.settings.always_show_uncommitted
        with self._lock:
            watched = rel in self._files
        if not watched:
            if not always_show or not self._has_local_changes(rel):
                return False
            if not self._accept(rel):
                logger.debug("Saved file ignored or not found: %s", rel)
                return False

        with self._lock:
            self._state = PassState.ATTRIBUTING
            try:
                if always_show and SENTINEL_HASH not in self._hashes:
                    self._watch_labels([UNCOMMITTED_MESSAGE])
                    self._hashes.add(SENTINEL_HASH)
                self._files.add(rel)
                self._update_file(rel, frozenset(self._hashes))
            finally:
                self._state = PassState.IDLE
        self._host.highlights_changed()
        return True

    def on_config_changed(self, key: str, value: Any) -> None:
        """
        Apply one setting change.

        Raises:
            ConfigurationError: unknown key or bad value.
        """
        name = SETTING_KEYS.get(key, key)
        with self._lock:
            previous = self._ctx.settings
            self._ctx.settings = previous.with_value(name, value)
            current = self._ctx.settings

            if name == "ignore_patterns":
                self._ignore.reload(current.ignore_patterns)
            elif name == "max_workers":
                self._scheduler = ConcurrencyScheduler(current.max_workers)
            elif name in ("show_all_commits", "test_merged_commits", "query_timeout"):
                logger.info("%s takes effect the next time the repository is opened", key)

        if (
            name == "always_show_uncommitted"
            and current.always_show_uncommitted
            and not previous.always_show_uncommitted
        ):
            self.add_commits([UNCOMMITTED_MESSAGE])

    def cancel(self) -> None:
        """Stop the running pass from starting any further files."""
        self._cancel.set()

    def clear(self) -> None:
        """Forget every watched commit and file; the history index is retained."""
        self._cancel.set()
        with self._lock:
            self._labels = {}
            self._hashes = set()
            self._files = set()
            self._store.clear()
            self._ctx.invalidate()
            self._state = PassState.IDLE
        logger.debug("All highlight data removed")

    # --- helpers ------------------------------------------------------------

    def _canonical(self, label: str) -> str:
        commit = self._index.get(label)
        return commit.label if commit is not None else label

    def _wants_uncommitted(self, labels: list[str]) -> bool:
        return any(
            (commit := self._index.get(label)) is not None and commit.is_uncommitted
            for label in labels
        )

    def _watch_labels(self, labels: Iterable[str]) -> set[str]:
        hashes: set[str] = set()
        for label, commit_hash in self._index.resolve(labels).items():
            self._labels[self._canonical(label)] = commit_hash
            hashes.add(commit_hash)
        return hashes

    def _linked_commits(self, hashes: set[str]) -> set[str]:
        """Side-branch commits brought in by watched merge commits."""
        linked: set[str] = set()
        for commit in self._index.commits():
            if commit.hash not in hashes or not commit.is_merge:
                continue
            try:
                siblings = self._ctx.vcs.commits_in_range(commit.parents[0], commit.hash)
            except VcsQueryError as e:
                logger.warning("Listing commits merged by %s failed: %s", commit.label, e)
                continue
            for h in siblings:
                if h in hashes:
                    continue
                linked.add(h)
                label = self._index.label_for_hash(h)
                if label is not None:
                    self._labels.setdefault(label, h)

        if linked and not self._sibling_notice_shown:
            self._host.info(
                f"Link merged commits enabled -- {len(linked)} additional commits added to watch list"
            )
            self._sibling_notice_shown = True
        return linked

    def _collect_files(self, hashes: set[str]) -> bool:
        """
        Resolve and filter the files touched by `hashes` into the watched set.

        Returns:
            False when the host declined a large batch (state has been cleared).
        """
        candidates = self._resolver.resolve(hashes)
        logger.debug("%d potential files found before filtering", len(candidates))

        for rel in candidates:
            if self._accept(rel):
                self._files.add(rel)
            else:
                logger.debug("File ignored or not found: %s", rel)

        total = len(self._files)
        logger.info("%d files with changes found after filtering", total)
        if total > self.settings.large_batch_threshold:
            confirmed = self._host.confirm(
                f"Detected a large number of changes: {total} files found with changes. "
                "Are you sure you wish to process them?"
            )
            if not confirmed:
                self.clear()
                return False
        return True

    def _accept(self, rel: str) -> bool:
        if self._ignore.matches(rel):
            return False
        if not self._ctx.absolute(rel).exists():
            return False
        if self.settings.respect_vcs_ignore:
            try:
                if self._ctx.vcs.check_ignore(rel):
                    return False
            except VcsQueryError as e:
                logger.warning("check-ignore failed for %s: %s", rel, e)
        return True

    def _attribute(self, files: Iterable[str], progress: Optional[ProgressSink]) -> None:
        hashes = frozenset(self._hashes)
        done = self._scheduler.run(
            sorted(files),
            lambda rel: self._update_file(rel, hashes),
            progress=progress,
            cancel=self._cancel,
        )
        logger.info(
            "Highlights filled for %d of %d files (%d with matches)",
            done,
            len(self._files),
            len(self._store),
        )

    def _update_file(self, rel: str, hashes: frozenset[str]) -> int:
        lines = self._blame.attribute(
            rel, hashes, include_whitespace=self.settings.include_whitespace_blame
        )
        count = self._store.update(str(self._ctx.absolute(rel)), lines)
        logger.debug("%d changes found in %s", count, rel)
        return count

    def _has_local_changes(self, rel: str) -> bool:
        try:
            return bool(self._ctx.vcs.working_tree_changes(rel))
        except VcsQueryError as e:
            logger.warning("Checking %s for local changes failed: %s", rel, e)
            return False
