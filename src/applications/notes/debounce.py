"""Trailing-debounce persistence for free-text fields.

DebouncedFieldSaver waits until input has been quiet for ``delay_seconds``
before persisting the latest value. ``flush()`` persists immediately (loss
of focus) and ``close()`` flushes before teardown, so a buffered edit is
never dropped. Saves from one saver run one at a time, in order.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

QUICK_NOTES_DELAY_SECONDS = 0.5
PANEL_NOTES_DELAY_SECONDS = 1.5


class SaverClosedError(RuntimeError):
    """Raised when updating a saver after close()."""


class DebouncedFieldSaver(Generic[T]):
    """Debounced auto-save for one field.

    Args:
        save_fn: Persists a value. A raised exception, or a result whose
            ``committed`` attribute is False, counts as a failed save; the
            value stays dirty and the next flush retries it.
        initial: The value currently persisted.
        delay_seconds: Quiet period before a save fires.
        is_dirty: Decides whether a value needs saving. Defaults to
            "differs from the last persisted value".
        name: Label used in log entries.

    Example:
        >>> saver = DebouncedFieldSaver(save_notes, initial="", delay_seconds=1.5)
        >>> saver.update("Emailed Dr. Lee")
        >>> await saver.flush()  # on blur
    """

    def __init__(
        self,
        save_fn: Callable[[T], Awaitable[Any]],
        initial: T,
        delay_seconds: float = PANEL_NOTES_DELAY_SECONDS,
        is_dirty: Optional[Callable[[T], bool]] = None,
        name: str = "field",
    ):
        if delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")
        self._save_fn = save_fn
        self._value: T = initial
        self._persisted: T = initial
        self.delay_seconds = delay_seconds
        self._is_dirty = is_dirty
        self.name = name
        self._timer: Optional["asyncio.Task[None]"] = None
        self._lock = asyncio.Lock()
        self._saving = False
        self._closed = False
        self.save_count = 0

    @property
    def value(self) -> T:
        return self._value

    @property
    def persisted(self) -> T:
        return self._persisted

    @property
    def saving(self) -> bool:
        return self._saving

    @property
    def pending(self) -> bool:
        """True while a debounced save is scheduled."""
        return self._timer is not None and not self._timer.done()

    @property
    def dirty(self) -> bool:
        if self._is_dirty is not None:
            return self._is_dirty(self._value)
        return self._value != self._persisted

    def update(self, value: T) -> None:
        """Record new input and restart the quiet period."""
        if self._closed:
            raise SaverClosedError(f"{self.name} saver is closed")
        self._value = value
        self._cancel_timer()
        if self.dirty:
            self._timer = asyncio.ensure_future(self._save_after_delay())

    def reset(self, persisted: T) -> None:
        """Adopt a value loaded from the store, dropping any pending save."""
        self._cancel_timer()
        self._value = persisted
        self._persisted = persisted

    async def flush(self) -> bool:
        """Save now if the value is dirty, cancelling the scheduled save.

        Returns:
            True if nothing was left unsaved.
        """
        self._cancel_timer()
        return await self._save()

    async def close(self) -> bool:
        """Flush and stop accepting input."""
        flushed = await self.flush()
        self._closed = True
        return flushed

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _save_after_delay(self) -> None:
        await asyncio.sleep(self.delay_seconds)
        self._timer = None
        await self._save()

    async def _save(self) -> bool:
        async with self._lock:
            if not self.dirty:
                return True
            value = self._value
            self._saving = True
            try:
                result = await self._save_fn(value)
            except Exception as e:
                logger.error(
                    "Auto-save failed",
                    extra={"field": self.name, "error": str(e)},
                )
                return False
            finally:
                self._saving = False

            if getattr(result, "committed", True) is False:
                logger.warning("Auto-save was rolled back", extra={"field": self.name})
                return False

            self._persisted = value
            self.save_count += 1
            return not self.dirty
