"""Storage backends for deal records and vehicle inventory.

``DealStore`` and ``VehicleStore`` answer synchronously; their SQL
counterparts in ``repositories.postgres`` return coroutines. Routers go
through ``resolve`` so either backend can be mounted on the app.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, TypeVar

T = TypeVar("T")


async def resolve(result: T | Awaitable[T]) -> T:
    """Value of a store call, awaiting it when the backend is async.

    ::

        vehicles = await resolve(store.list_vehicles(query))
        deal_id = await resolve(store.allocate_deal_id())
    """
    if inspect.isawaitable(result):
        return await result  # type: ignore[return-value]
    return result  # type: ignore[return-value]
