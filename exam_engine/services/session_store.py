"""
services/session_store.py

시험 세션의 단일 진실 공급원 (Session State Store).

불변식:
  - 문제가 있으면 0 <= current_index < N
  - 단일 선택 문제는 True인 보기가 최대 1개
  - writable이 False이면 선택/이동 변경을 받지 않는다 (최종 제출 이후)

영속화는 호출자 책임이며, 변경 작업 후 스냅샷 저장을 직접 트리거해야 한다.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from exam_engine.models.question_model import Question
from exam_engine.models.session_state import ExamSession
from exam_engine.services import exam_service, navigation

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[ExamSession]], None]


class SessionStore:
    def __init__(self) -> None:
        self._session: Optional[ExamSession] = None
        self._listeners: List[Listener] = []
        self.writable = False

    # ── 조회 ──────────────────────────────────────────────────────────────

    @property
    def session(self) -> Optional[ExamSession]:
        return self._session

    @property
    def exam_id(self) -> Optional[str]:
        return self._session.exam_id if self._session else None

    @property
    def current_index(self) -> int:
        return self._session.current_index if self._session else 0

    @property
    def question_count(self) -> int:
        return self._session.question_count if self._session else 0

    def current_question(self) -> Optional[Question]:
        s = self._session
        if s is None or not s.questions:
            return None
        return s.questions[s.current_index]

    def find_question(self, question_id: str) -> Optional[Question]:
        if self._session is None:
            return None
        for q in self._session.questions:
            if q.id == question_id:
                return q
        return None

    def index_of(self, question_id: str) -> Optional[int]:
        if self._session is None:
            return None
        for i, q in enumerate(self._session.questions):
            if q.id == question_id:
                return i
        return None

    def selection(self, question_id: Optional[str] = None) -> Dict[str, bool]:
        """문제의 선택 상태 사본. question_id가 없으면 현재 문제."""
        if self._session is None:
            return {}
        if question_id is None:
            q = self.current_question()
            if q is None:
                return {}
            question_id = q.id
        return dict(self._session.selections.get(question_id, {}))

    def current_selected_option_ids(self) -> List[str]:
        """제출용 투영. 순서는 의미 없음 (선택된 id 집합)."""
        return [opt for opt, on in self.selection().items() if on]

    def is_answered(self, index: int) -> bool:
        if self._session is None:
            return False
        return exam_service.is_answered(self._session, index)

    def answered_count(self) -> int:
        return sum(1 for i in range(self.question_count) if self.is_answered(i))

    def is_saved(self, index: int) -> bool:
        if self._session is None:
            return False
        return bool(self._session.saved_marks.get(index))

    # ── 구독 ──────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """변경 알림 구독. 반환된 함수를 호출하면 구독 해제."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception:
                logger.exception("세션 구독자 처리 중 오류")

    # ── 변경 ──────────────────────────────────────────────────────────────

    def replace(self, session: ExamSession) -> ExamSession:
        """시작 성공 시 기존 세션을 통째로 교체."""
        self._session = session
        self._notify()
        return session

    def restore(self, snapshot) -> Optional[ExamSession]:
        """
        스냅샷(ExamSession, dict 또는 JSON 문자열)에서 세션을 복원한다.

        구조가 잘못되었으면 None을 반환하고 기존 상태를 건드리지 않는다.
        인덱스는 모델 검증 단계에서 범위 보정된다.
        """
        if snapshot is None:
            return None
        try:
            if isinstance(snapshot, ExamSession):
                restored = ExamSession.model_validate(snapshot.model_dump())
            elif isinstance(snapshot, (str, bytes)):
                restored = ExamSession.model_validate_json(snapshot)
            else:
                restored = ExamSession.model_validate(snapshot)
        except ValidationError as e:
            logger.warning(f"스냅샷 복원 실패, 새 세션으로 간주: {e.error_count()}개 오류")
            return None
        self._session = restored
        self._notify()
        return restored

    def clear(self) -> None:
        self._session = None
        self.writable = False
        self._notify()

    def select(self, question_id: str, option_id: str) -> bool:
        """
        보기를 토글한다. 단일 선택 문제면 다른 보기를 먼저 모두 해제한다.

        Returns:
            실제로 상태가 바뀌었으면 True.
        """
        s = self._session
        if s is None or not self.writable:
            return False
        question = self.find_question(question_id)
        if question is None:
            return False
        if question.options and option_id not in question.option_ids():
            logger.debug(f"존재하지 않는 보기 무시: {question_id}/{option_id}")
            return False

        current = dict(s.selections.get(question_id, {}))
        was_on = current.get(option_id, False)
        if not question.multi_select:
            current = {}
        current[option_id] = not was_on
        s.selections[question_id] = current

        # 답이 바뀌었으므로 저장 표시는 다시 제출해야 유효
        idx = self.index_of(question_id)
        if idx is not None:
            s.saved_marks.pop(idx, None)

        self._notify()
        return True

    def go_to(self, index: int) -> bool:
        s = self._session
        if s is None or not self.writable or not s.questions:
            return False
        s.current_index = navigation.clamp(index, len(s.questions))
        self._notify()
        return True

    def set_saved_mark(self, index: int, saved: bool = True) -> None:
        s = self._session
        if s is None or not (0 <= index < len(s.questions)):
            return
        if saved:
            s.saved_marks[index] = True
        else:
            s.saved_marks.pop(index, None)
        self._notify()
