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


class GitVisionError(Exception):
    """Base exception for domain-specific errors."""


class VcsQueryError(GitVisionError):
    """A version-control query failed (non-zero exit, timeout, git missing)."""

    def __init__(self, message: str, *, command: tuple = (), stderr: str = "") -> None:
        super().__init__(message)
        self.command = tuple(command)
        self.stderr = stderr


class ConfigurationError(GitVisionError):
    """Unknown setting, bad value, or an unusable repository path."""


class PersistenceError(GitVisionError):
    """Watch-list storage problems."""
