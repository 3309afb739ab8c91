"""Forward-only cursor over a streamed query result.

ResultCursor wraps a SQLAlchemy AsyncResult (from AsyncSession.stream) and a
converter that turns each row into a domain value. It is used much like a
database cursor:

    async with cursor:
        while await cursor.advance():
            item = cursor.current
            ...
        if cursor.error is not None:
            ...

or, more idiomatically, with ``async for``, which raises IterationError when
the stream ends on a failure:

    async with cursor:
        async for item in cursor:
            ...

A cursor is single-pass. Once advance() has returned False it keeps
returning False; once an error is recorded the underlying result is never
touched again. release() closes the result and is safe to call more than
once, so callers can release on every exit path.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncResult

from socialfeed.errors import IterationError

T = TypeVar("T")

_UNSET: Any = object()


class ResultCursor(Generic[T]):
    def __init__(self, result: AsyncResult, convert: Callable[[Any], T]) -> None:
        self._result = result
        self._convert = convert
        self._current: T = _UNSET
        self._error: Optional[BaseException] = None
        self._exhausted = False
        self._released = False

    async def advance(self) -> bool:
        """Move to the next value. Returns False at end of data or on the first error."""
        if self._error is not None or self._exhausted or self._released:
            return False

        try:
            row = await self._result.fetchone()
        except Exception as exc:
            return self._fail(exc)

        if row is None:
            self._exhausted = True
            self._current = _UNSET
            return False

        try:
            self._current = self._convert(row)
        except Exception as exc:
            return self._fail(exc)
        return True

    def _fail(self, exc: Exception) -> bool:
        self._current = _UNSET
        self._error = exc
        return False

    @property
    def current(self) -> T:
        """The value produced by the last successful advance()."""
        if self._current is _UNSET:
            raise RuntimeError("current is only valid after advance() returned True")
        return self._current

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    async def release(self) -> None:
        """Close the underlying result. Only the first call has an effect."""
        if self._released:
            return
        self._released = True
        self._current = _UNSET
        await self._result.close()

    async def collect(self) -> list[T]:
        """Drain the remaining values into a list, raising IterationError on failure."""
        return [item async for item in self]

    async def __aenter__(self) -> "ResultCursor[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()

    def __aiter__(self) -> "ResultCursor[T]":
        return self

    async def __anext__(self) -> T:
        if await self.advance():
            return self._current
        if self._error is not None:
            raise IterationError(f"result iteration failed: {self._error}") from self._error
        raise StopAsyncIteration
