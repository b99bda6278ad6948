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
from pathlib import PurePath
from typing import Iterable, Optional

import pathspec

logger = logging.getLogger(__name__)


class IgnoreFilter:
    """
    Ordered list of gitignore-style globs deciding which candidate paths are
    left out of attribution. Pure: the only state is the compiled pattern list.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None) -> None:
        self._patterns: tuple[str, ...] = ()
        self._specs: tuple[tuple[str, pathspec.PathSpec], ...] = ()
        self.reload(patterns or ())

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def reload(self, patterns: Iterable[str]) -> None:
        cleaned = tuple(p.strip() for p in patterns if p and p.strip())
        self._patterns = cleaned
        self._specs = tuple(
            (p, pathspec.GitIgnoreSpec.from_lines([p])) for p in cleaned
        )
        logger.debug("Loaded ignore patterns: %s", ", ".join(cleaned))

    def matches(self, path: str | PurePath) -> bool:
        normalized = str(path).replace("\\", "/")
        for pattern, spec in self._specs:
            if spec.match_file(normalized):
                logger.debug("File %s matches ignore pattern %s", normalized, pattern)
                return True
        return False
