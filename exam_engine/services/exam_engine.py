"""
services/exam_engine.py — 시험 세션 엔진

세션 상태 저장소, 카운트다운, 스냅샷, 답안 동기화 채널을 하나로 묶는다.
표시 계층은 이 객체만 다루면 된다.

상태 머신:
  NO_SESSION → IN_PROGRESS → FINISHING → FINISHED
  FINISHING 에서 IN_PROGRESS 로 돌아가지 않는다 (최종 제출 재시도는 FINISHING 유지).

모든 변경은 이벤트 루프 한 곳에서 동기적으로 처리된다.
네트워크 완료 시점에는 대상 exam_id가 여전히 활성인지 다시 확인한다.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from config import DEFAULT_DURATION_SEC, DEFAULT_QUESTION_COUNT, TICK_INTERVAL_SEC
from exam_engine.errors import (
    ExamEngineError,
    FinishFailed,
    RemoteUnavailable,
    StartFailed,
    SubmitFailed,
)
from exam_engine.models.api_models import ExamDetail, ExamFinishResponse, ExamPage
from exam_engine.models.question_model import Question
from exam_engine.models.session_state import ExamSession, SessionPhase, can_transition
from exam_engine.services import navigation
from exam_engine.services.answer_sync import AnswerSyncChannel
from exam_engine.services.countdown import CountdownScheduler
from exam_engine.services.remote_client import ExamApiClient
from exam_engine.services.session_store import SessionStore
from exam_engine.services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class EngineStatus:
    """표시 계층용 상태 플래그. 예외 대신 여기에 기록된다."""

    loading: bool = False
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def fail(self, exc: ExamEngineError) -> None:
        self.error = str(exc)
        self.error_kind = exc.kind

    def clear_error(self) -> None:
        self.error = None
        self.error_kind = None


class ExamEngine:
    def __init__(
        self,
        client: Optional[ExamApiClient] = None,
        snapshots: Optional[SnapshotStore] = None,
        clock: Callable[[], float] = time.time,
        tick_interval: float = TICK_INTERVAL_SEC,
        finish_retry_attempts: Optional[int] = None,
        finish_retry_backoff: Optional[float] = None,
    ) -> None:
        # 주입된 클라이언트는 호출자가 닫는다
        self._owns_client = client is None
        self.client = client if client is not None else ExamApiClient()
        self.snapshots = snapshots if snapshots is not None else SnapshotStore()
        self.clock = clock
        self.store = SessionStore()
        self.status = EngineStatus()
        self.phase = SessionPhase.NO_SESSION
        self.summary: Optional[ExamFinishResponse] = None
        self.last_finished_id: Optional[str] = None

        self.countdown = CountdownScheduler(
            on_expire=self._on_expire,
            clock=clock,
            interval=tick_interval,
        )
        sync_kwargs = {}
        if finish_retry_attempts is not None:
            sync_kwargs["retry_attempts"] = finish_retry_attempts
        if finish_retry_backoff is not None:
            sync_kwargs["retry_backoff"] = finish_retry_backoff
        self.sync = AnswerSyncChannel(
            self.client, self.store, on_error=self._on_submit_error, **sync_kwargs
        )
        self._finish_task: Optional[asyncio.Task] = None

        # 진행 중인 세션이 바뀔 때마다 스냅샷 저장
        self.store.subscribe(self._on_store_change)

    # ── 조회 ──────────────────────────────────────────────────────────────

    @property
    def session(self) -> Optional[ExamSession]:
        return self.store.session

    @property
    def exam_id(self) -> Optional[str]:
        return self.store.exam_id

    @property
    def remaining_sec(self) -> int:
        s = self.store.session
        if s is None or self.phase is SessionPhase.FINISHED:
            return 0
        if self.countdown.is_running:
            return self.countdown.remaining_sec
        return s.remaining_sec(self.clock())

    def current_question(self) -> Optional[Question]:
        return self.store.current_question()

    def is_selected(self, option_id: str) -> bool:
        return bool(self.store.selection().get(option_id))

    def visible_window(self) -> List[int]:
        return navigation.visible_window(self.store.current_index, self.store.question_count)

    def subscribe(self, listener):
        return self.store.subscribe(listener)

    # ── 상태 전이 ─────────────────────────────────────────────────────────

    def _transition(self, target: SessionPhase) -> None:
        if not can_transition(self.phase, target):
            raise ExamEngineError(f"허용되지 않는 상태 전이: {self.phase.value} → {target.value}")
        logger.debug(f"세션 상태 {self.phase.value} → {target.value}")
        self.phase = target
        self.store.writable = target is SessionPhase.IN_PROGRESS

    def _activate(self, session: ExamSession) -> None:
        """새 세션(또는 복원된 세션)을 진행 상태로 올리고 타이머를 건다."""
        self.countdown.stop()
        self.sync.reset()
        self.summary = None
        self._finish_task = None
        self._transition(SessionPhase.IN_PROGRESS)
        self._persist()
        self.countdown.start(session.started_at, session.duration_sec)

    def _persist(self) -> None:
        s = self.store.session
        if s is not None and self.phase is SessionPhase.IN_PROGRESS:
            self.snapshots.save(s)

    def _persist_finishing(self) -> None:
        s = self.store.session
        if s is not None and not s.finishing:
            self.snapshots.save(s.model_copy(update={"finishing": True}))

    def _on_store_change(self, session: Optional[ExamSession]) -> None:
        self._persist()

    # ── 시작 / 복원 ───────────────────────────────────────────────────────

    async def start(
        self,
        count: int = DEFAULT_QUESTION_COUNT,
        duration_sec: int = DEFAULT_DURATION_SEC,
    ) -> Optional[ExamSession]:
        """
        원격 서비스에 새 시험을 요청한다.

        Returns:
            성공 시 새 세션. 실패 시 None (기존 상태 유지, status.error 설정).
        """
        if self.phase is SessionPhase.FINISHING:
            logger.warning("최종 제출 진행 중에는 새 시험을 시작할 수 없음")
            return None

        self.status.loading = True
        self.status.clear_error()
        try:
            res = await self.client.start_exam(count, duration_sec)
        except StartFailed as e:
            logger.warning(f"시험 시작 실패: {e}")
            self.status.fail(e)
            return None
        finally:
            self.status.loading = False

        if self.phase is SessionPhase.FINISHING:
            # 응답을 기다리는 사이 최종 제출이 시작되었으면 결과 폐기
            logger.info(f"폐기된 시작 응답: {res.exam_id}")
            return None

        session = ExamSession(
            exam_id=res.exam_id,
            questions=res.questions,
            started_at=self.clock(),
            duration_sec=res.duration_sec,
        )
        self.store.replace(session)
        self._activate(session)
        logger.info(f"시험 시작: {session.exam_id} ({session.question_count}문제, {session.duration_sec}초)")
        return session

    async def restore(self, snapshot) -> Optional[ExamSession]:
        """
        스냅샷으로 세션을 복원한다. 구조가 잘못되었으면 None ("세션 없음").

        복원 시점에 이미 시간이 다 지났으면 첫 틱에서 바로 최종 제출한다.
        최종 제출 중에 끝난 세션은 답안 수정 없이 최종 제출부터 다시 시도한다.
        """
        if self.phase is SessionPhase.FINISHING:
            return None
        restored = self.store.restore(snapshot)
        if restored is None:
            return None
        self._activate(restored)
        logger.info(f"시험 복원: {restored.exam_id} (문제 {restored.current_index + 1}/{restored.question_count})")
        if restored.finishing:
            logger.info(f"최종 제출 재개: {restored.exam_id}")
            self.request_finish()
        return restored

    async def resume(self) -> Optional[ExamSession]:
        """로컬 슬롯에 남은 진행 중 시험이 있으면 이어서 진행한다."""
        return await self.restore(self.snapshots.load())

    def abandon(self) -> bool:
        """진행 중인 시험을 버린다. 스냅샷도 삭제."""
        if self.phase not in (SessionPhase.IN_PROGRESS, SessionPhase.FINISHED):
            return False
        self.countdown.stop()
        self.sync.reset()
        self._transition(SessionPhase.NO_SESSION)
        self.snapshots.clear()
        self.store.clear()
        self.summary = None
        self.status.clear_error()
        return True

    # ── 선택 / 이동 ───────────────────────────────────────────────────────

    def select(self, question_id: str, option_id: str) -> bool:
        changed = self.store.select(question_id, option_id)
        if changed:
            self.sync.invalidate(question_id)
        return changed

    def toggle(self, option_id: str) -> bool:
        """현재 문제의 보기를 토글한다."""
        q = self.store.current_question()
        if q is None:
            return False
        return self.select(q.id, option_id)

    def go_to(self, index: int) -> bool:
        return self.store.go_to(index)

    def prev(self) -> bool:
        return self.go_to(self.store.current_index - 1)

    def next(self) -> bool:
        return self.go_to(self.store.current_index + 1)

    def jump(self, value) -> bool:
        """1부터 시작하는 문제 번호로 이동. 숫자가 아니면 무시."""
        index = navigation.parse_jump(value, self.store.question_count)
        if index is None:
            return False
        return self.go_to(index)

    # ── 답안 동기화 ───────────────────────────────────────────────────────

    def submit_current(self) -> Optional[asyncio.Task]:
        """
        현재 문제의 답을 원격 서비스에 보낸다. 결과를 기다리지 않는다.

        Returns:
            전송 태스크. 보낼 수 없는 상태면 None.
        """
        if self.phase is not SessionPhase.IN_PROGRESS:
            return None
        q = self.store.current_question()
        exam_id = self.store.exam_id
        if q is None or exam_id is None:
            return None
        self.status.clear_error()
        return self.sync.submit(
            exam_id,
            q.id,
            self.store.current_selected_option_ids(),
            self.store.current_index,
        )

    def _on_submit_error(self, error: SubmitFailed) -> None:
        self.status.fail(error)

    async def drain(self) -> None:
        await self.sync.drain()

    # ── 최종 제출 ─────────────────────────────────────────────────────────

    def _on_expire(self) -> None:
        self.request_finish()

    def request_finish(self) -> Optional[asyncio.Task]:
        """
        최종 제출을 시작한다. 이미 진행 중이면 같은 태스크를 돌려준다.

        타이머는 원격 호출 전에 동기적으로 멈춘다.
        """
        if self._finish_task is not None and not self._finish_task.done():
            return self._finish_task
        exam_id = self.store.exam_id
        if exam_id is None or self.phase not in (SessionPhase.IN_PROGRESS, SessionPhase.FINISHING):
            return None
        self.countdown.stop()
        self._transition(SessionPhase.FINISHING)
        self._persist_finishing()
        self.status.clear_error()
        self._finish_task = asyncio.get_running_loop().create_task(self._finish(exam_id))
        return self._finish_task

    async def finish(self) -> Optional[ExamFinishResponse]:
        """
        최종 제출 후 결과를 기다린다.

        Returns:
            성공 시 원격 요약. 실패 시 None (FINISHING 유지, 재시도 가능).
        """
        task = self.request_finish()
        if task is None:
            return None
        return await task

    async def _finish(self, exam_id: str) -> Optional[ExamFinishResponse]:
        try:
            summary = await self.sync.finish(exam_id)
        except FinishFailed as e:
            if self.store.exam_id == exam_id:
                logger.warning(f"최종 제출 실패: {exam_id}")
                self.status.fail(e)
            return None

        if self.store.exam_id != exam_id or self.phase is not SessionPhase.FINISHING:
            logger.debug(f"폐기된 최종 제출 응답: {exam_id}")
            return None

        self.snapshots.clear()
        self.summary = summary
        self.last_finished_id = exam_id
        self._transition(SessionPhase.FINISHED)
        logger.info(f"시험 종료: {exam_id} (점수 {summary.score_percent}%)")
        return summary

    # ── 읽기 전용 조회 ────────────────────────────────────────────────────

    async def fetch_review(self, exam_id: Optional[str] = None) -> Optional[ExamDetail]:
        """
        종료된 시험의 상세 기록. 실패해도 세션 상태는 건드리지 않는다.
        """
        exam_id = exam_id or self.last_finished_id
        if not exam_id:
            self.status.fail(RemoteUnavailable("Missing exam id"))
            return None
        try:
            return await self.client.get_exam(exam_id)
        except RemoteUnavailable as e:
            self.status.fail(e)
            return None

    async def fetch_history(self, limit: int = 20, offset: int = 0) -> Optional[ExamPage]:
        try:
            return await self.client.list_exams(limit, offset)
        except RemoteUnavailable as e:
            self.status.fail(e)
            return None

    # ── 정리 ──────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        """
        화면 해제 시 호출. 타이머와 진행 중인 전송을 정리한다.

        스냅샷은 남겨 두므로 다음 실행에서 resume() 가능.
        """
        self.countdown.stop()
        self.sync.cancel_all()
        if self._finish_task is not None and not self._finish_task.done():
            self._finish_task.cancel()
        if self._owns_client:
            await self.client.aclose()
