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
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .errors import VcsQueryError

if TYPE_CHECKING:
    from ..config import Settings
    from ..ports.vcs import VcsPort

logger = logging.getLogger(__name__)


class RepositoryContext:
    """
    Everything a component needs to know about the repository it works on.

    Passed by reference into every service instead of module-level globals.
    Tracked files and the HEAD / root hashes are queried lazily and cached for
    the lifetime of the context; `invalidate()` drops the caches.
    """

    def __init__(self, root: str | Path, vcs: VcsPort, settings: Settings) -> None:
        self.root = Path(root).resolve()
        self.vcs = vcs
        self.settings = settings
        self._lock = threading.Lock()
        self._tracked: Optional[frozenset[str]] = None
        self._head: Optional[str] = None
        self._roots: Optional[frozenset[str]] = None

    # --- cached queries -----------------------------------------------------

    @property
    def tracked_files(self) -> frozenset[str]:
        with self._lock:
            if self._tracked is None:
                try:
                    self._tracked = frozenset(self.vcs.tracked_files())
                except VcsQueryError as e:
                    logger.warning("Listing tracked files failed: %s", e)
                    self._tracked = frozenset()
            return self._tracked

    @property
    def head(self) -> str:
        with self._lock:
            if self._head is None:
                try:
                    self._head = self.vcs.head()
                except VcsQueryError as e:
                    logger.warning("Resolving HEAD failed: %s", e)
                    self._head = ""
            return self._head

    @property
    def root_commits(self) -> frozenset[str]:
        with self._lock:
            if self._roots is None:
                try:
                    self._roots = frozenset(self.vcs.root_commits())
                except VcsQueryError as e:
                    logger.warning("Resolving root commit failed: %s", e)
                    self._roots = frozenset()
            return self._roots

    def invalidate(self) -> None:
        with self._lock:
            self._tracked = None
            self._head = None
            self._roots = None

    # --- path helpers -------------------------------------------------------

    def absolute(self, rel_path: str) -> Path:
        return self.root / rel_path

    def relative(self, path: str | Path) -> Optional[str]:
        """Repository-relative POSIX path, or None when `path` lies outside the root."""
        p = Path(path)
        if not p.is_absolute():
            p = self.root / p
        try:
            return p.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None

    def is_tracked(self, rel_path: str) -> bool:
        return rel_path in self.tracked_files
