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

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ..domain.models import HistoryEntry


class VcsPort(ABC):
    """
    Abstract interface for the version-control queries the engine relies on.

    Paths are repository-relative with forward slashes. Implementations raise
    VcsQueryError when a query cannot be answered.
    """

    @abstractmethod
    def history(self) -> list[HistoryEntry]:
        """Full commit history, newest first."""
        raise NotImplementedError

    @abstractmethod
    def root_commits(self) -> list[str]:
        """Hashes of commits without a parent."""
        raise NotImplementedError

    @abstractmethod
    def head(self) -> str:
        """Hash of the current HEAD commit."""
        raise NotImplementedError

    @abstractmethod
    def tracked_files(self) -> Iterable[str]:
        """All version-controlled paths."""
        raise NotImplementedError

    @abstractmethod
    def changed_files(self, commit: str) -> list[str]:
        """Paths changed by `commit` relative to its first parent."""
        raise NotImplementedError

    @abstractmethod
    def introduced_files(self, commit: str) -> list[str]:
        """Paths added by a parentless commit."""
        raise NotImplementedError

    @abstractmethod
    def working_tree_changes(self, path: Optional[str] = None) -> list[str]:
        """Paths differing between the working tree and HEAD, optionally limited to `path`."""
        raise NotImplementedError

    @abstractmethod
    def renamed_files(self, commit: str, similarity: int) -> list[str]:
        """Paths changed between `commit`'s parent and HEAD, with rename detection."""
        raise NotImplementedError

    @abstractmethod
    def blame(self, path: str, include_whitespace: bool) -> list[str]:
        """Raw per-line blame output; each line starts with the full commit hash."""
        raise NotImplementedError

    @abstractmethod
    def check_ignore(self, path: str) -> bool:
        """True when VCS ignore rules exclude `path`."""
        raise NotImplementedError

    @abstractmethod
    def commits_in_range(self, start: str, end: str) -> list[str]:
        """Hashes reachable from `end` but not from `start`, newest first."""
        raise NotImplementedError
