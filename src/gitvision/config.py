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

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .domain.errors import ConfigurationError

# Editor-facing setting keys -> Settings field names.
SETTING_KEYS: dict[str, str] = {
    "alwaysShowUncommittedChanges": "always_show_uncommitted",
    "showAllCommits": "show_all_commits",
    "testMergedCommits": "test_merged_commits",
    "findRenamedFiles": "find_renamed_files",
    "includeWhitespaceBlame": "include_whitespace_blame",
    "ignorePatterns": "ignore_patterns",
    "linkMergedCommits": "link_merged_commits",
    "respectVcsIgnore": "respect_vcs_ignore",
    "maxWorkers": "max_workers",
    "largeBatchThreshold": "large_batch_threshold",
    "queryTimeout": "query_timeout",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """
    Engine configuration.

    Defaults mirror the editor extension; `from_env()` overlays GITVISION_*
    environment variables and the CLI overlays its own flags on top.
    """

    always_show_uncommitted: bool = False
    show_all_commits: bool = False
    test_merged_commits: bool = False
    find_renamed_files: bool = False
    include_whitespace_blame: bool = False
    link_merged_commits: bool = False
    respect_vcs_ignore: bool = False
    ignore_patterns: tuple[str, ...] = ()
    max_workers: int = 10
    large_batch_threshold: int = 100
    rename_similarity: int = 70
    query_timeout: Optional[float] = 30.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if environ is None else environ
        settings = cls()
        for f in dataclasses.fields(cls):
            raw = env.get(f"GITVISION_{f.name.upper()}")
            if raw is not None:
                settings = settings.with_value(f.name, raw)
        return settings

    def with_value(self, key: str, value: Any) -> Settings:
        """
        Return a copy with one setting replaced.

        `key` may be an editor-style key (``findRenamedFiles``) or a field name.

        Raises:
            ConfigurationError: unknown key or a value that cannot be coerced.
        """
        name = SETTING_KEYS.get(key, key)
        fields = {f.name: f for f in dataclasses.fields(self)}
        if name not in fields:
            raise ConfigurationError(f"Unknown setting: {key}")
        current = getattr(self, name)
        return dataclasses.replace(self, **{name: _coerce(name, current, value)})


def _coerce(name: str, current: Any, value: Any) -> Any:
    if name == "ignore_patterns":
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(p.strip() for p in value.split(",") if p.strip())
        return tuple(str(p) for p in value)

    if name == "query_timeout":
        if value is None or (isinstance(value, str) and value.strip().lower() in {"", "none", "0"}):
            return None
        try:
            timeout = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{name} must be a number: {value!r}") from e
        return timeout if timeout > 0 else None

    if isinstance(current, bool):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ConfigurationError(f"{name} must be a boolean: {value!r}")

    if isinstance(current, int):
        try:
            number = int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{name} must be an integer: {value!r}") from e
        if number < 1:
            raise ConfigurationError(f"{name} must be >= 1: {value!r}")
        # passed to git as a percentage
        if name == "rename_similarity" and number > 100:
            raise ConfigurationError(f"{name} must be between 1 and 100: {value!r}")
        return number

    return value
