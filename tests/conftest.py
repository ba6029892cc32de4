"""
Shared fixtures for the exam engine tests.

Provides a controllable clock, a question factory and an in-process fake of
the remote exam service whose answer calls can be held open and resolved by
the test in any order.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from exam_engine.errors import FinishFailed, StartFailed, SubmitFailed
from exam_engine.models.api_models import ExamFinishResponse, StartExamResponse
from exam_engine.models.question_model import Option, Question
from exam_engine.models.session_state import ExamSession
from exam_engine.services.snapshot_store import MemorySlot, SnapshotStore


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_questions(count: int, multi_every: int = 0) -> List[Question]:
    """count questions with options A-D; every multi_every-th one is multi-select."""
    questions = []
    for i in range(count):
        multi = bool(multi_every) and (i + 1) % multi_every == 0
        questions.append(Question(
            id=f"q{i + 1}",
            question_text=f"Question {i + 1}",
            multi_select=multi,
            options=[Option(id=k, text=f"Option {k}") for k in "ABCD"],
        ))
    return questions


def make_session(count: int = 3, **overrides) -> ExamSession:
    data = dict(
        exam_id="exam-1",
        questions=make_questions(count, multi_every=2),
        started_at=1_700_000_000.0,
        duration_sec=1800,
    )
    data.update(overrides)
    return ExamSession(**data)


class FakeExamApi:
    """Stand-in for ExamApiClient with scripted failures."""

    def __init__(self, questions: Optional[List[Question]] = None):
        self.questions = questions if questions is not None else make_questions(20, multi_every=3)
        self.start_error: Optional[Exception] = None
        self.answer_error: Optional[Exception] = None
        self.finish_errors: List[Exception] = []
        self.hold_answers = False
        self.pending: List[Tuple[asyncio.Future, str, str, List[str]]] = []
        self.answers: Dict[Tuple[str, str], List[str]] = {}
        self.answer_calls = 0
        self.start_calls = 0
        self.finish_calls: List[str] = []
        self.closed = False

    async def start_exam(self, count: int, duration_sec: int) -> StartExamResponse:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        return StartExamResponse(
            exam_id=f"exam-{self.start_calls}",
            duration_sec=duration_sec,
            questions=self.questions[:count],
        )

    async def answer_exam(self, exam_id: str, question_id: str, selected: List[str]) -> None:
        self.answer_calls += 1
        if self.hold_answers:
            fut = asyncio.get_running_loop().create_future()
            self.pending.append((fut, exam_id, question_id, list(selected)))
            await fut
        if self.answer_error is not None:
            raise self.answer_error
        self.answers[(exam_id, question_id)] = sorted(selected)

    async def finish_exam(self, exam_id: str) -> ExamFinishResponse:
        self.finish_calls.append(exam_id)
        if self.finish_errors:
            raise self.finish_errors.pop(0)
        return ExamFinishResponse(score_percent=50.0, correct=1, wrong=1, passed=False)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_api():
    return FakeExamApi()


@pytest.fixture
def snapshots():
    return SnapshotStore(slot=MemorySlot())


@pytest.fixture
def start_failed():
    return StartFailed("Failed to start exam", status_code=503)


@pytest.fixture
def submit_failed():
    return SubmitFailed("Failed to save answer")


@pytest.fixture
def finish_failed():
    return FinishFailed("Failed to finish exam")
