"""Invoke helpers: call sync or async callables uniformly.

Handlers, ``handle()`` methods, startup hooks and route module ``setup``
functions can all be ``def`` or ``async def``. Any code that calls one of
them goes through :func:`invoke` so the sync/async check lives in exactly
one place.

Usage::

    from relay._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler* and await the result if it is awaitable.

    Works with plain functions, coroutine functions, and sync functions
    that hand back an awaitable (e.g. ``return next()``)::

        def passthrough(request, response, next, state):
            return next()

        async def timing(request, response, next, state):
            await next()
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
