"""
services/remote_client.py — 원격 시험 서비스 비동기 HTTP 클라이언트

사용자 식별은 쿠키 기반 (서버가 발급한 쿠키를 클라이언트가 유지).
모든 전송/HTTP 오류는 RemoteError 하위 예외로 변환된다.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Type

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from config import DEFAULT_TIMEOUT, EXAM_API_BASE
from exam_engine.errors import (
    FinishFailed,
    RemoteError,
    RemoteUnavailable,
    StartFailed,
    SubmitFailed,
)
from exam_engine.models.api_models import (
    AnswerRequest,
    ExamDetail,
    ExamFinishResponse,
    ExamPage,
    LearnAnswerRequest,
    LearnFeedback,
    StartExamRequest,
    StartExamResponse,
)
from exam_engine.models.question_model import Question

logger = logging.getLogger(__name__)

_QUESTION_LIST = TypeAdapter(List[Question])


class ExamApiClient:
    def __init__(
        self,
        base_url: str = EXAM_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ExamApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: Type[RemoteError],
        message: str,
        **kwargs,
    ) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"{method} {path} → HTTP {e.response.status_code}")
            raise error_cls(message, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} 전송 실패: {e!r}")
            raise error_cls(message) from e

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise error_cls(message, status_code=resp.status_code) from e

    @staticmethod
    def _body(model_cls: Type[BaseModel], error_cls: Type[RemoteError], message: str, **fields) -> dict:
        """요청 본문 검증. 잘못된 입력도 원격 오류와 같은 예외로 돌려준다."""
        try:
            return model_cls(**fields).model_dump(by_alias=True)
        except ValidationError as e:
            logger.warning(f"잘못된 요청 본문 ({model_cls.__name__}): {e.error_count()}개 오류")
            raise error_cls(message) from e

    # ── 시험 ──────────────────────────────────────────────────────────────

    async def start_exam(self, count: int, duration_sec: int) -> StartExamResponse:
        body = self._body(
            StartExamRequest, StartFailed, "Failed to start exam",
            count=count, duration_sec=duration_sec,
        )
        data = await self._request(
            "POST", "/exams", StartFailed, "Failed to start exam",
            json=body,
        )
        try:
            return StartExamResponse.model_validate(data)
        except ValidationError as e:
            raise StartFailed("Failed to start exam") from e

    async def answer_exam(self, exam_id: str, question_id: str, selected: List[str]) -> None:
        """같은 (exam_id, question_id)로 다시 보내면 서버가 덮어쓴다 (upsert)."""
        body = self._body(
            AnswerRequest, SubmitFailed, "Failed to save answer",
            selected=list(selected),
        )
        await self._request(
            "POST", f"/exams/{exam_id}/answer", SubmitFailed, "Failed to save answer",
            params={"questionId": question_id},
            json=body,
        )

    async def finish_exam(self, exam_id: str) -> ExamFinishResponse:
        data = await self._request(
            "POST", f"/exams/{exam_id}/finish", FinishFailed, "Failed to finish exam",
            json={},
        )
        try:
            return ExamFinishResponse.model_validate(data)
        except ValidationError as e:
            raise FinishFailed("Failed to finish exam") from e

    async def get_exam(self, exam_id: str) -> ExamDetail:
        data = await self._request(
            "GET", f"/exams/{exam_id}", RemoteUnavailable, "Failed to load exam",
        )
        try:
            return ExamDetail.model_validate(data)
        except ValidationError as e:
            raise RemoteUnavailable("Failed to load exam") from e

    async def list_exams(self, limit: int = 20, offset: int = 0) -> ExamPage:
        data = await self._request(
            "GET", "/exams", RemoteUnavailable, "Failed to load exams",
            params={"limit": limit, "offset": offset},
        )
        try:
            return ExamPage.model_validate(data)
        except ValidationError as e:
            raise RemoteUnavailable("Failed to load exams") from e

    # ── 학습 모드 ─────────────────────────────────────────────────────────

    async def get_questions(self, tag: Optional[str] = None) -> List[Question]:
        params = {"tag": tag} if tag else None
        data = await self._request(
            "GET", "/questions", RemoteUnavailable, "Failed to load questions",
            params=params,
        )
        try:
            return _QUESTION_LIST.validate_python(data)
        except ValidationError as e:
            raise RemoteUnavailable("Failed to load questions") from e

    async def learn_answer(self, question_id: str, selected: List[str], lang: str = "en") -> LearnFeedback:
        body = self._body(
            LearnAnswerRequest, SubmitFailed, "Failed to check answer",
            question_id=question_id, selected=list(selected), lang=lang,
        )
        data = await self._request(
            "POST", "/learn/answer", SubmitFailed, "Failed to check answer",
            json=body,
        )
        try:
            return LearnFeedback.model_validate(data)
        except ValidationError as e:
            raise SubmitFailed("Failed to check answer") from e
