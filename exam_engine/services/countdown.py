"""
services/countdown.py

남은 시험 시간 카운트다운 (1초 주기).
매 틱마다 시작 시각 기준으로 남은 시간을 다시 계산한다 (카운터 감소 방식 아님).
절전/백그라운드로 틱이 밀려도 다음 틱에서 바로 올바른 값이 나온다.

시간이 0이 되면 타이머 핸들을 먼저 정리한 뒤 만료 콜백을 정확히 한 번 호출한다.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from config import TICK_INTERVAL_SEC
from exam_engine.models.session_state import remaining_seconds

logger = logging.getLogger(__name__)


class CountdownScheduler:
    """
    세션당 살아 있는 타이머 핸들은 최대 1개.

    Args:
        on_expire: 남은 시간이 0이 되었을 때 한 번 호출되는 콜백.
        clock:     현재 시각 함수 (기본 time.time).
        interval:  틱 주기 (초).
        on_tick:   틱마다 남은 시간(초)을 받는 선택 콜백.
    """

    def __init__(
        self,
        on_expire: Callable[[], None],
        clock: Callable[[], float] = time.time,
        interval: float = TICK_INTERVAL_SEC,
        on_tick: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.on_expire = on_expire
        self.clock = clock
        self.interval = interval
        self.on_tick = on_tick
        self.remaining_sec = 0
        self._started_at: Optional[float] = None
        self._duration_sec = 0
        self._task: Optional[asyncio.Task] = None
        self._active = False

    @property
    def is_running(self) -> bool:
        return self._active

    def start(self, started_at: float, duration_sec: int) -> None:
        """
        카운트다운 시작. 이전 핸들은 먼저 정리한다.

        첫 틱은 즉시 계산하며, 그 자리에서 만료되면 타이머를 만들지 않는다.
        실행 중인 이벤트 루프 안에서 호출해야 한다.
        """
        self.stop()
        self._started_at = started_at
        self._duration_sec = duration_sec
        self._active = True
        self.tick()
        if self._active:
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.debug(f"카운트다운 시작: 남은 시간 {self.remaining_sec}초")

    def stop(self) -> None:
        """타이머 핸들을 동기적으로 해제한다. 여러 번 호출해도 안전."""
        self._active = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def tick(self) -> int:
        """
        남은 시간을 다시 계산한다.

        Returns:
            남은 시간 (초). 정지 상태면 마지막으로 계산된 값.
        """
        if not self._active or self._started_at is None:
            return self.remaining_sec
        remaining = remaining_seconds(self._started_at, self._duration_sec, self.clock())
        # 시계가 뒤로 가도 표시값은 늘어나지 않는다
        if self.remaining_sec and remaining > self.remaining_sec and self._task is not None:
            remaining = self.remaining_sec
        self.remaining_sec = remaining
        if self.on_tick is not None:
            self.on_tick(remaining)
        if remaining <= 0:
            logger.info("시험 시간 종료, 자동 제출")
            self.stop()
            self.on_expire()
        return remaining

    async def _run(self) -> None:
        while self._active:
            await asyncio.sleep(self.interval)
            if not self._active:
                break
            self.tick()
