# file: crisp_relay/services/timer_registry.py

import asyncio
import logging
from typing import Callable, Dict, List

from crisp_relay.schemas.messages import ConversationSession

logger = logging.getLogger("timer_registry")

PauseCallback = Callable[[ConversationSession], object]


class TimerRegistry:
    """
    One cancellable delayed call per conversation session.

    Arming a session always replaces (cancels) the timer already armed for
    it. A timer that was cancelled never runs its callback. Entries leave the
    table when the timer fires or is cancelled.
    """

    def __init__(self) -> None:
        self._timers: Dict[ConversationSession, asyncio.Task] = {}

    # --------------------------------------------------------
    # Arm / cancel
    # --------------------------------------------------------
    def arm(self, session: ConversationSession, delay: float, callback: PauseCallback) -> None:
        self.cancel_if_armed(session)

        self._timers[session] = asyncio.create_task(
            self._run(session, delay, callback),
            name=f"pause-timer:{session.key}",
        )
        logger.debug(f"[TIMER] armed session={session.key} delay={delay:.3f}s")

    def cancel_if_armed(self, session: ConversationSession) -> bool:
        task = self._timers.pop(session, None)
        if task is None:
            return False

        task.cancel()
        logger.debug(f"[TIMER] cancelled session={session.key}")
        return True

    def cancel_all(self) -> List[asyncio.Task]:
        tasks = list(self._timers.values())
        for task in tasks:
            task.cancel()
        self._timers.clear()

        logger.debug(f"[TIMER] cancelled all ({len(tasks)})")
        return tasks

    # --------------------------------------------------------
    # Inspection
    # --------------------------------------------------------
    def is_armed(self, session: ConversationSession) -> bool:
        return session in self._timers

    def armed_sessions(self) -> List[ConversationSession]:
        return list(self._timers)

    def __len__(self) -> int:
        return len(self._timers)

    # --------------------------------------------------------
    # Timer body
    # --------------------------------------------------------
    async def _run(self, session: ConversationSession, delay: float, callback: PauseCallback) -> None:
        await asyncio.sleep(delay)

        # superseded between wake-up and this step
        if self._timers.get(session) is not asyncio.current_task():
            return
        del self._timers[session]

        logger.debug(f"[TIMER] fired session={session.key}")
        try:
            callback(session)
        except Exception as e:
            logger.exception(f"❌ [TIMER] pause callback failed for session={session.key}: {e}")
