"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반: 스냅샷 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음.
"""

import math
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from exam_engine.models.question_model import Question


class SessionPhase(str, Enum):
    """
    세션 수준 상태 머신.

    NO_SESSION → IN_PROGRESS → FINISHING → FINISHED
    FINISHING → IN_PROGRESS 전이는 허용하지 않는다.
    """

    NO_SESSION = "no_session"
    IN_PROGRESS = "in_progress"
    FINISHING = "finishing"
    FINISHED = "finished"


ALLOWED_TRANSITIONS: Dict[SessionPhase, set] = {
    SessionPhase.NO_SESSION: {SessionPhase.IN_PROGRESS},
    SessionPhase.IN_PROGRESS: {
        SessionPhase.IN_PROGRESS,
        SessionPhase.FINISHING,
        SessionPhase.NO_SESSION,
    },
    SessionPhase.FINISHING: {SessionPhase.FINISHING, SessionPhase.FINISHED},
    SessionPhase.FINISHED: {SessionPhase.IN_PROGRESS, SessionPhase.NO_SESSION},
}


def can_transition(current: SessionPhase, target: SessionPhase) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def remaining_seconds(started_at: float, duration_sec: int, now: float) -> int:
    # 시계가 시작 시각보다 뒤로 가 있어도 제한 시간을 넘지 않는다
    elapsed = max(0, math.floor(now - started_at))
    return max(0, duration_sec - elapsed)


class ExamSession(BaseModel):
    """
    사용자의 시험 세션 전체 상태를 표현하는 모델 (집계 루트).

    Attributes:
        exam_id:       원격 서비스가 시작 시 발급한 시험 식별자.
        questions:     문제 리스트. 세션 동안 길이/순서 고정.
        started_at:    카운트다운 시작 시각 (time.time() 기준 Unix timestamp).
        duration_sec:  제한 시간 (초). 시작 시 고정.
        current_index: 현재 보고 있는 문제 인덱스 (0-based).
        selections:    {question.id: {option.id: 선택 여부}}. 키 없음 = 아직 선택 없음.
        saved_marks:   {문제 인덱스: True}. 원격 서비스가 현재 답을 받았다는 로컬 표시 (참고용).
        finishing:     최종 제출을 이미 보냈음. 복원 시 답안 수정 없이 바로 최종 제출을 재시도한다.
    """

    exam_id: str = Field(
        ...,
        min_length=1,
        description="원격 서비스가 발급한 시험 ID"
    )
    questions: List[Question] = Field(
        default_factory=list,
        description="문제 리스트 (순서 고정)"
    )
    started_at: float = Field(
        ...,
        gt=0,
        description="시험 시작 시각 (Unix timestamp, time.time() 기준)"
    )
    duration_sec: int = Field(
        ...,
        ge=0,
        description="제한 시간 (초)"
    )
    current_index: int = Field(
        default=0,
        description="현재 풀고 있는 문제 인덱스 (0-based)"
    )
    selections: Dict[str, Dict[str, bool]] = Field(
        default_factory=dict,
        description="선택 상태. key: question.id, value: {option.id: bool}"
    )
    saved_marks: Dict[int, bool] = Field(
        default_factory=dict,
        description="원격 저장 확인 표시. key: 문제 인덱스"
    )
    finishing: bool = Field(
        default=False,
        description="최종 제출 진행 중 여부"
    )

    @field_validator('started_at')
    @classmethod
    def validate_started_at(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("started_at은 유한한 값이어야 합니다.")
        return v

    @model_validator(mode='after')
    def clamp_current_index(self) -> 'ExamSession':
        """
        스냅샷 복원 시 인덱스가 범위를 벗어나 있으면 [0, N-1]로 보정한다.
        """
        n = len(self.questions)
        if n == 0:
            self.current_index = 0
        else:
            self.current_index = max(0, min(self.current_index, n - 1))
        return self

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def remaining_sec(self, now: float) -> int:
        """남은 시간 (초). 저장하지 않고 항상 시작 시각 기준으로 계산한다."""
        return remaining_seconds(self.started_at, self.duration_sec, now)
