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
from typing import AbstractSet

from ..domain.errors import VcsQueryError
from ..ports.vcs import VcsPort

logger = logging.getLogger(__name__)


class BlameAttributionEngine:
    """
    Attributes the lines of one file to the watched commits.

    Read-only with respect to shared state; callers store the result.
    """

    def __init__(self, vcs: VcsPort) -> None:
        self._vcs = vcs

    def attribute(
        self,
        file: str,
        watched_hashes: AbstractSet[str],
        include_whitespace: bool = False,
    ) -> list[int]:
        """
        Zero-based indices of the lines whose blame hash is in `watched_hashes`.

        A failed blame (no history, deleted file, binary) is logged and yields [].
        """
        if not watched_hashes:
            return []

        logger.debug("Checking %s for blame", file)
        try:
            blame_lines = self._vcs.blame(file, include_whitespace)
        except VcsQueryError as e:
            logger.warning("Error getting blame for file %s: %s", file, e)
            return []

        lines = [
            line_number
            for line_number, raw in enumerate(blame_lines)
            if _line_hash(raw) in watched_hashes
        ]
        logger.debug("%d watched lines found in %s", len(lines), file)
        return lines


def _line_hash(raw: str) -> str:
    token = raw.split(" ", 1)[0].strip()
    # boundary commits are prefixed with '^'
    return token.lstrip("^")
