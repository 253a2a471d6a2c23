"""In-memory registry of mounted view sessions, one per page load."""
import logging
import time
from typing import Callable, Dict, Optional, Tuple
from uuid import uuid4

from fiscal_calendar.views.app_view import AppView

logger = logging.getLogger(__name__)


class ViewSessionRegistry:
    def __init__(self, factory: Callable[[], AppView], idle_seconds: float, clock: Callable[[], float] = time.monotonic):
        self._factory = factory
        self._idle_seconds = idle_seconds
        self._clock = clock
        self._sessions: Dict[str, AppView] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(self) -> Tuple[str, AppView]:
        self.evict_idle()
        view = self._factory()
        await view.mount()
        sid = uuid4().hex
        self._sessions[sid] = view
        self._last_seen[sid] = self._clock()
        return sid, view

    def get(self, sid: str) -> Optional[AppView]:
        view = self._sessions.get(sid)
        if view is not None:
            self._last_seen[sid] = self._clock()
        return view

    def close(self, sid: str) -> bool:
        view = self._sessions.pop(sid, None)
        self._last_seen.pop(sid, None)
        if view is None:
            return False
        view.teardown()
        return True

    def evict_idle(self) -> int:
        cutoff = self._clock() - self._idle_seconds
        stale = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for sid in stale:
            self.close(sid)
        if stale:
            logger.info(f"Evicted {len(stale)} idle view session(s)")
        return len(stale)

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.close(sid)
