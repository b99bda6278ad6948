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

import concurrent.futures
import logging
import threading
from typing import Any, Callable, Iterable, Optional

from ..ports.host import ProgressSink

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 10


class ConcurrencyScheduler:
    """
    Runs one worker per file on a bounded thread pool.

    - At most `max_workers` workers are in flight.
    - Every file is visited at most once; `run` returns only after all
      submitted work has finished (no fire-and-forget).
    - A worker exception is logged and does not affect sibling files.
    - Setting the `cancel` event stops files that have not started yet.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._max_workers = int(max_workers)

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def run(
        self,
        files: Iterable[str],
        worker: Callable[[str], Any],
        progress: Optional[ProgressSink] = None,
        cancel: Optional[threading.Event] = None,
    ) -> int:
        """
        Execute `worker(file)` for each distinct file.

        Returns:
            Number of files whose worker completed without raising.
        """
        unique = list(dict.fromkeys(files))
        if not unique:
            return 0

        increment = 1.0 / len(unique)
        completed = 0

        def _guarded(file: str) -> Any:
            if cancel is not None and cancel.is_set():
                raise concurrent.futures.CancelledError()
            return worker(file)

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="gitvision"
        ) as executor:
            futures = {executor.submit(_guarded, f): f for f in unique}
            for future in concurrent.futures.as_completed(futures):
                file = futures[future]
                if cancel is not None and cancel.is_set():
                    for pending in futures:
                        pending.cancel()
                try:
                    future.result()
                except concurrent.futures.CancelledError:
                    logger.debug("Skipped %s: pass cancelled", file)
                    continue
                except Exception as e:
                    logger.warning("Attribution failed for %s: %s", file, e)
                else:
                    completed += 1
                if progress is not None:
                    progress(increment)

        return completed
