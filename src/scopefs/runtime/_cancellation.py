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

"""Cooperative cancellation for walks, pools and patch runs."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass
class CancellationToken:
    """Thread-safe abort flag checked at work boundaries.

    Walks check the token before each directory and child, pools before each
    item, and the patch engine between files. Work already in flight is
    allowed to finish and partial results are returned.

    Example::

        token = CancellationToken()
        task = asyncio.create_task(grep(storage, GrepOptions("TODO", token=token)))
        token.cancel()
        partial = await task
    """

    _cancelled: bool = field(default=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True

    def is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled


def is_cancelled(token: CancellationToken | None) -> bool:
    return token is not None and token.is_cancelled()


__all__ = ["CancellationToken", "is_cancelled"]
