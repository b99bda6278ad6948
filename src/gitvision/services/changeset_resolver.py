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
import posixpath
from collections import defaultdict
from typing import Iterable, Optional

from ..domain.context import RepositoryContext
from ..domain.errors import VcsQueryError
from ..domain.models import SENTINEL_HASH

logger = logging.getLogger(__name__)


class ChangeSetResolver:
    """
    Determines which tracked files a set of commits touched.

    Purely derived from the VCS diff queries; nothing is cached here beyond the
    basename lookup table built from the context's tracked-file list.

    Per hash:
      - sentinel: working tree against HEAD
      - current HEAD: working tree against HEAD, plus HEAD's own diff. The
        working-tree diff alone is empty on a clean checkout, which would drop
        every file HEAD itself changed.
      - parentless commit: the files it introduced
      - otherwise: the commit against its first parent
      - with `find_renamed_files`: additionally parent..HEAD with rename detection

    Paths not tracked verbatim fall back to a basename lookup, accepted only
    when exactly one tracked file carries that name.
    """

    def __init__(self, context: RepositoryContext) -> None:
        self._ctx = context
        self._basenames: Optional[dict[str, list[str]]] = None
        self._basenames_source: Optional[frozenset[str]] = None

    def resolve(self, hashes: Iterable[str]) -> set[str]:
        files: set[str] = set()
        for commit_hash in hashes:
            changed = self.changed_files(commit_hash)
            if not changed:
                logger.debug("Found 0 files with changes for commit %s", commit_hash)
            files.update(changed)
        return files

    def changed_files(self, commit_hash: str) -> set[str]:
        """Tracked paths touched by one commit (query failures yield an empty set)."""
        try:
            raw = self._diff(commit_hash)
        except VcsQueryError as e:
            logger.warning("Error getting changed files for commit %s: %s", commit_hash, e)
            return set()

        logger.debug("Diff for %s: %s", commit_hash, raw)
        accepted: set[str] = set()
        for path in raw:
            match = self.match_tracked(path)
            if match is not None:
                accepted.add(match)
        return accepted

    def match_tracked(self, path: str) -> Optional[str]:
        """The tracked path for `path`, via basename fallback when needed; None if ambiguous."""
        path = path.strip()
        if not path:
            return None
        tracked = self._ctx.tracked_files
        if path in tracked:
            return path

        candidates = self._basename_table(tracked).get(posixpath.basename(path), [])
        if len(candidates) == 1:
            logger.debug("Resolved %s to renamed file %s", path, candidates[0])
            return candidates[0]
        if candidates:
            logger.debug("Dropping %s: %d tracked files share its name", path, len(candidates))
        return None

    # --- helpers ------------------------------------------------------------

    def _diff(self, commit_hash: str) -> list[str]:
        vcs = self._ctx.vcs
        settings = self._ctx.settings

        if commit_hash == SENTINEL_HASH:
            return vcs.working_tree_changes()

        res: list[str] = []
        if commit_hash == self._ctx.head:
            # HEAD's own diff is unioned in; the working tree alone would miss it
            res += vcs.working_tree_changes()

        if commit_hash in self._ctx.root_commits:
            res += vcs.introduced_files(commit_hash)
            return res

        res += vcs.changed_files(commit_hash)
        if settings.find_renamed_files:
            res += vcs.renamed_files(commit_hash, settings.rename_similarity)
        return res

    def _basename_table(self, tracked: frozenset[str]) -> dict[str, list[str]]:
        if self._basenames is None or self._basenames_source is not tracked:
            table: dict[str, list[str]] = defaultdict(list)
            for f in tracked:
                table[posixpath.basename(f)].append(f)
            self._basenames = dict(table)
            self._basenames_source = tracked
        return self._basenames
