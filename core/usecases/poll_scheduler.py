"""
주기 실행 스케줄러

메일 확인 작업을 고정 간격으로 실행합니다. 작업은 한 번에 하나씩 순서대로 실행되며,
작업 중 발생한 예외는 기록만 하고 다음 주기를 계속 진행합니다.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from ..domain.ports import LoggerPort


class PollScheduler:
    """고정 간격 스케줄러"""

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval_minutes: float,
        logger: LoggerPort,
        initial_delay: float = 1.0,
    ):
        self.job = job
        self.interval_seconds = interval_minutes * 60
        self.logger = logger
        self.initial_delay = initial_delay
        self.run_count = 0
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    def set_interval(self, interval_minutes: float) -> None:
        """다음 주기부터 적용될 실행 간격을 변경합니다."""
        self.interval_seconds = interval_minutes * 60
        self.logger.info(f"메일 확인 간격 변경: {interval_minutes}분")

    async def run_once(self) -> Any:
        self.run_count += 1
        try:
            return await self.job()
        except Exception as e:
            self.logger.error(f"주기 작업 실패: {str(e)}")
            return None

    async def run_forever(self) -> None:
        if self._stop_event is None:
            self._stop_event = asyncio.Event()

        if await self._wait(self.initial_delay):
            return

        while True:
            await self.run_once()
            if await self._wait(self.interval_seconds):
                return

    async def _wait(self, seconds: float) -> bool:
        """지정 시간 대기. 정지 요청이 오면 True를 반환합니다."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    def start(self) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            return self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.ensure_future(self.run_forever())
        self.logger.info(f"메일 확인 스케줄러 시작: {self.interval_seconds / 60:g}분 간격")
        return self._task

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        self.logger.info("메일 확인 스케줄러 종료")
