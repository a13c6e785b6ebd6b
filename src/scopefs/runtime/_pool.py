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

"""Bounded asyncio worker pool."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Final

from ._cancellation import CancellationToken, is_cancelled

DEFAULT_CONCURRENCY: Final[int] = 4


async def run_pool[T](
    items: Sequence[T],
    worker: Callable[[T], Awaitable[None]],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    token: CancellationToken | None = None,
) -> int:
    """Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    A fixed set of runners pull the next index from a shared cursor until the
    items are exhausted or ``token`` is cancelled. Items already started are
    allowed to complete. The first exception raised by ``worker`` cancels
    the other runners and propagates unwrapped.

    Returns:
        The number of items handed to ``worker``.
    """

    if concurrency < 1:
        msg = "concurrency must be at least 1."
        raise ValueError(msg)

    cursor = 0
    started = 0

    async def runner() -> None:
        nonlocal cursor, started
        while cursor < len(items) and not is_cancelled(token):
            item = items[cursor]
            cursor += 1
            started += 1
            await worker(item)

    width = min(concurrency, len(items))
    if width:
        try:
            async with asyncio.TaskGroup() as group:
                for _ in range(width):
                    _ = group.create_task(runner())
        except ExceptionGroup as error:
            raise error.exceptions[0] from None
    return started


__all__ = ["DEFAULT_CONCURRENCY", "run_pool"]
