"""Deadline racing for awaitables.

``race`` turns a pending operation into a Result: the operation's value if it
finishes in time, the caller's label if the deadline passes first, or a
wrapped description if the operation itself raises. ``asyncio.wait_for``
owns the timer, so it is always cleared once a winner is known.

Cancellation is weak: a timed-out operation is cancelled on our side, but a
statement already sent to PostgreSQL may still run to completion there.
"""

import asyncio
from typing import Awaitable, TypeVar

from valhalla.result import Err, Ok, Result

T = TypeVar("T")


async def race(seconds: float, awaitable: Awaitable[T], label: str = "rejected") -> Result[T]:
    """Await ``awaitable`` for at most ``seconds``.

    Args:
        seconds: Deadline in seconds.
        awaitable: Coroutine or awaitable to run.
        label: Error string returned when the deadline wins.

    Returns:
        Ok(value) on completion, Err(label) on timeout, Err(...) wrapping any
        exception the awaitable raised. Cancellation of the calling task is
        not intercepted.
    """
    try:
        value = await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        return Err(label)
    except Exception as exc:
        return Err(f"Promise was rejected: {exc!r}, {label}")
    return Ok(value)
