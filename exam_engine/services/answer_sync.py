"""
services/answer_sync.py

문제별 답안을 원격 서비스에 비동기로 올리는 채널.
네비게이션/카운트다운을 막지 않으며, 실패해도 자동 재시도하지 않는다.

같은 문제에 대한 전송은 순번으로 구분해 가장 최근 것만 저장 표시를 바꿀 수 있다.
문제가 다르면 동시에 여러 건이 진행될 수 있다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Set

from config import FINISH_RETRY_ATTEMPTS, FINISH_RETRY_BACKOFF
from exam_engine.errors import FinishFailed, SubmitFailed
from exam_engine.models.api_models import ExamFinishResponse
from exam_engine.services.remote_client import ExamApiClient
from exam_engine.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class AnswerSyncChannel:
    def __init__(
        self,
        client: ExamApiClient,
        store: SessionStore,
        on_error: Optional[Callable[[SubmitFailed], None]] = None,
        retry_attempts: int = FINISH_RETRY_ATTEMPTS,
        retry_backoff: float = FINISH_RETRY_BACKOFF,
    ) -> None:
        self.client = client
        self.store = store
        self.on_error = on_error
        self.retry_attempts = max(0, retry_attempts)
        self.retry_backoff = retry_backoff
        self._seq: Dict[str, int] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def reset(self) -> None:
        """새 세션 시작 시 순번을 초기화한다. 진행 중인 전송은 취소."""
        self.cancel_all()
        self._seq.clear()

    def invalidate(self, question_id: str) -> None:
        """답이 바뀌었으므로 진행 중인 이전 전송 결과를 무시하게 한다."""
        self._seq[question_id] = self._seq.get(question_id, 0) + 1

    def _is_latest(self, exam_id: str, question_id: str, seq: int) -> bool:
        return self.store.exam_id == exam_id and self._seq.get(question_id) == seq

    def submit(self, exam_id: str, question_id: str, selected: List[str], index: int) -> asyncio.Task:
        """
        답안 upsert 요청을 백그라운드로 보낸다 (fire-and-forget).

        Args:
            index: 전송 시점의 문제 인덱스. 성공 시 이 인덱스에 저장 표시.

        Returns:
            전송 태스크. 결과는 성공 여부(bool).
        """
        self.invalidate(question_id)
        seq = self._seq[question_id]
        task = asyncio.get_running_loop().create_task(
            self._send(exam_id, question_id, list(selected), index, seq)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send(self, exam_id: str, question_id: str, selected: List[str], index: int, seq: int) -> bool:
        try:
            await self.client.answer_exam(exam_id, question_id, selected)
        except SubmitFailed as e:
            if not self._is_latest(exam_id, question_id, seq):
                logger.debug(f"이미 대체된 전송의 실패 무시: {question_id}#{seq}")
                return False
            logger.warning(f"답안 저장 실패: exam={exam_id} question={question_id}")
            if self.on_error is not None:
                self.on_error(e)
            return False

        if not self._is_latest(exam_id, question_id, seq):
            logger.debug(f"이미 대체된 전송의 성공 무시: {question_id}#{seq}")
            return False
        self.store.set_saved_mark(index, True)
        return True

    async def drain(self) -> None:
        """진행 중인 전송이 모두 끝날 때까지 기다린다."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    async def finish(self, exam_id: str) -> ExamFinishResponse:
        """
        최종 제출 요청. retry_attempts가 0이면 한 번만 시도한다.

        재시도 간격은 retry_backoff초부터 시도마다 2배.

        Raises:
            FinishFailed: 모든 시도가 실패한 경우.
        """
        delay = self.retry_backoff
        attempt = 0
        while True:
            try:
                return await self.client.finish_exam(exam_id)
            except FinishFailed:
                if attempt >= self.retry_attempts:
                    raise
                attempt += 1
                logger.warning(f"최종 제출 실패, {delay:.1f}초 후 재시도 ({attempt}/{self.retry_attempts})")
                await asyncio.sleep(delay)
                delay *= 2
