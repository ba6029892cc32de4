"""
models/api_models.py

원격 시험 서비스와 주고받는 요청/응답 모델.
와이어 포맷은 camelCase, 파이썬 쪽 필드는 snake_case.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from exam_engine.models.question_model import Question


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartExamRequest(WireModel):
    count: int = Field(..., ge=1)
    duration_sec: int = Field(..., ge=1)


class StartExamResponse(WireModel):
    exam_id: str = Field(..., min_length=1)
    duration_sec: int = Field(..., ge=0)
    questions: List[Question] = Field(default_factory=list)


class AnswerRequest(WireModel):
    selected: List[str] = Field(default_factory=list)


class Explanation(WireModel):
    text: str = ""
    url: str = ""


class ReviewItem(WireModel):
    question_id: str
    question_text: str
    selected: List[str] = Field(default_factory=list)
    correct: List[str] = Field(default_factory=list)
    explanations_en: Dict[str, Explanation] = Field(default_factory=dict)
    explanations_pl: Dict[str, Explanation] = Field(default_factory=dict)
    was_correct: bool = False


class ExamFinishResponse(WireModel):
    score_percent: float
    correct: int
    wrong: int
    passed: Optional[bool] = None
    items: List[ReviewItem] = Field(default_factory=list)


class ExamDetail(WireModel):
    exam_id: str
    started_at: str
    finished_at: Optional[str] = None
    duration_sec: int
    score_percent: Optional[float] = None
    passed: Optional[bool] = None
    correct: int = 0
    wrong: int = 0
    items: List[ReviewItem] = Field(default_factory=list)


class ExamSummary(WireModel):
    id: str
    started_at: str
    finished_at: Optional[str] = None
    duration_sec: int
    score_percent: Optional[float] = None
    question_count: int
    passed: Optional[bool] = None


class ExamPage(WireModel):
    total: int
    limit: int
    offset: int
    items: List[ExamSummary] = Field(default_factory=list)


class LearnAnswerRequest(WireModel):
    question_id: str
    selected: List[str] = Field(default_factory=list)
    lang: str = "en"


class LearnFeedback(WireModel):
    is_correct: bool
    correct_option_ids: List[str] = Field(default_factory=list)
    explanations: Dict[str, Explanation] = Field(default_factory=dict)
