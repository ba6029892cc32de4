"""
services/learn_session.py — 학습 모드 세션

시간 제한/스냅샷 없이 문제를 풀고 문제별로 바로 채점 결과를 받는다.
선택 토글, 인덱스 보정, 페이지 창 규칙은 시험 모드와 같다.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional

from exam_engine.errors import RemoteUnavailable, SubmitFailed
from exam_engine.models.api_models import LearnFeedback
from exam_engine.models.question_model import Question
from exam_engine.services import navigation
from exam_engine.services.remote_client import ExamApiClient

logger = logging.getLogger(__name__)


class LearnSession:
    def __init__(self, client: ExamApiClient, lang: str = "en", rng: Optional[random.Random] = None) -> None:
        self.client = client
        self.lang = lang
        self.rng = rng
        self.tag: Optional[str] = None
        self.questions: List[Question] = []
        self.current_index = 0
        self.selections: Dict[str, Dict[str, bool]] = {}
        self.feedback: Dict[str, LearnFeedback] = {}
        self.loading = False
        self.error: Optional[str] = None

    async def load(self, tag: Optional[str] = None) -> bool:
        """
        문제 목록을 불러온다. 선택/피드백 캐시는 유지한다 (문제 id 기준).
        """
        self.loading = True
        self.error = None
        try:
            questions = await self.client.get_questions(tag)
        except RemoteUnavailable as e:
            self.error = str(e)
            return False
        finally:
            self.loading = False
        self.tag = tag
        self.questions = questions
        self.current_index = 0
        logger.info(f"학습 문제 {len(questions)}개 로드 (tag={tag or '전체'})")
        return True

    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def selection(self) -> Dict[str, bool]:
        q = self.current_question()
        if q is None:
            return {}
        return dict(self.selections.get(q.id, {}))

    def current_feedback(self) -> Optional[LearnFeedback]:
        q = self.current_question()
        if q is None:
            return None
        return self.feedback.get(q.id)

    def toggle(self, option_id: str) -> bool:
        q = self.current_question()
        if q is None:
            return False
        current = dict(self.selections.get(q.id, {}))
        was_on = current.get(option_id, False)
        if not q.multi_select:
            current = {}
        current[option_id] = not was_on
        self.selections[q.id] = current
        return True

    def go_to(self, index: int) -> None:
        self.current_index = navigation.clamp(index, len(self.questions))

    def prev(self) -> None:
        self.go_to(self.current_index - 1)

    def next(self) -> None:
        self.go_to(self.current_index + 1)

    def random(self) -> None:
        if len(self.questions) < 2:
            return
        self.go_to(navigation.random_index(self.current_index, len(self.questions), self.rng))

    def jump(self, value) -> bool:
        index = navigation.parse_jump(value, len(self.questions))
        if index is None:
            return False
        self.go_to(index)
        return True

    def visible_window(self) -> List[int]:
        return navigation.visible_window(self.current_index, len(self.questions))

    async def submit(self) -> Optional[LearnFeedback]:
        """현재 문제의 답을 채점 요청하고 결과를 문제 id 기준으로 캐시한다."""
        q = self.current_question()
        if q is None:
            return None
        selected = [opt for opt, on in self.selection().items() if on]
        self.error = None
        try:
            result = await self.client.learn_answer(q.id, selected, self.lang)
        except SubmitFailed as e:
            self.error = str(e)
            return None
        self.feedback[q.id] = result
        return result
