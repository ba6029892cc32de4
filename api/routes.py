"""
api/routes.py — 참조용 원격 시험 서비스 FastAPI 엔드포인트
"""

import random
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request

import api.session as session
from api.config import MAX_DURATION_SEC, MAX_QUESTION_COUNT
from api.sample_questions import QUESTION_INDEX, SAMPLE_QUESTIONS, public_question
from api.scoring import calculate_result, is_correct
from exam_engine.models.api_models import AnswerRequest, LearnAnswerRequest, StartExamRequest

router = APIRouter(prefix="/api/v1")


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _user(request: Request) -> str:
    return request.state.user_id


def _require_exam(request: Request, exam_id: str) -> dict[str, Any]:
    record = session.get_exam(_user(request), exam_id)
    if record is None:
        raise HTTPException(status_code=404, detail="시험을 찾을 수 없습니다.")
    return record


def _exam_questions(record: dict[str, Any]) -> list[dict[str, Any]]:
    return [QUESTION_INDEX[qid] for qid in record["question_ids"]]


def _summary(record: dict[str, Any]) -> dict[str, Any]:
    result = record["result"] or {}
    return {
        "id": record["exam_id"],
        "startedAt": record["started_at"],
        "finishedAt": record["finished_at"],
        "durationSec": record["duration_sec"],
        "scorePercent": result.get("scorePercent"),
        "questionCount": len(record["question_ids"]),
        "passed": result.get("passed"),
    }


# ── 시험 ─────────────────────────────────────────────────────────────────────

@router.post("/exams")
async def start_exam(request: Request, body: StartExamRequest):
    if body.count > MAX_QUESTION_COUNT:
        raise HTTPException(status_code=400, detail=f"문제 수는 최대 {MAX_QUESTION_COUNT}개입니다.")
    if body.duration_sec > MAX_DURATION_SEC:
        raise HTTPException(status_code=400, detail="시험 시간이 너무 깁니다.")

    count = min(body.count, len(SAMPLE_QUESTIONS))
    picked = random.sample(SAMPLE_QUESTIONS, count)
    record = session.create_exam(_user(request), [q["id"] for q in picked], body.duration_sec)
    return {
        "examId": record["exam_id"],
        "durationSec": record["duration_sec"],
        "questions": [public_question(q) for q in picked],
    }


@router.post("/exams/{exam_id}/answer")
async def answer_exam(
    request: Request,
    exam_id: str,
    body: AnswerRequest,
    question_id: str = Query(..., alias="questionId"),
):
    record = _require_exam(request, exam_id)
    if record["finished_at"] is not None:
        raise HTTPException(status_code=409, detail="이미 종료된 시험입니다.")
    if question_id not in record["question_ids"]:
        raise HTTPException(status_code=400, detail="시험에 포함되지 않은 문제입니다.")

    question = QUESTION_INDEX[question_id]
    valid = {o["id"] for o in question["options"]}
    if not set(body.selected) <= valid:
        raise HTTPException(status_code=400, detail="존재하지 않는 보기입니다.")
    if not question["multi_select"] and len(body.selected) > 1:
        raise HTTPException(status_code=400, detail="단일 선택 문제입니다.")

    if not session.put_answer(_user(request), exam_id, question_id, body.selected):
        raise HTTPException(status_code=409, detail="이미 종료된 시험입니다.")
    return {"ok": True}


@router.post("/exams/{exam_id}/finish")
async def finish_exam(request: Request, exam_id: str):
    record = _require_exam(request, exam_id)
    # 재시도된 종료 요청은 저장된 결과를 그대로 돌려준다
    if record["result"] is not None:
        return record["result"]

    result = calculate_result(_exam_questions(record), record["answers"])
    if not session.close_exam(_user(request), exam_id, result):
        return _require_exam(request, exam_id)["result"]
    return result


@router.get("/exams/{exam_id}")
async def get_exam(request: Request, exam_id: str):
    record = _require_exam(request, exam_id)
    result = record["result"]
    if result is None:
        # 진행 중인 시험: 지금까지 기록된 답만 보여준다 (점수 없음)
        result = calculate_result(_exam_questions(record), record["answers"])
        result = {**result, "scorePercent": None, "passed": None}
    return {
        "examId": record["exam_id"],
        "startedAt": record["started_at"],
        "finishedAt": record["finished_at"],
        "durationSec": record["duration_sec"],
        "scorePercent": result["scorePercent"],
        "passed": result["passed"],
        "correct": result["correct"],
        "wrong": result["wrong"],
        "items": result["items"],
    }


@router.get("/exams")
async def list_exams(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    exams = session.list_exams(_user(request))
    return {
        "total": len(exams),
        "limit": limit,
        "offset": offset,
        "items": [_summary(r) for r in exams[offset : offset + limit]],
    }


# ── 학습 모드 ─────────────────────────────────────────────────────────────────

@router.get("/questions")
async def get_questions(tag: Optional[str] = None):
    questions = SAMPLE_QUESTIONS
    if tag:
        questions = [q for q in questions if tag in q["tags"]]
    return [public_question(q) for q in questions]


@router.post("/learn/answer")
async def learn_answer(body: LearnAnswerRequest):
    question = QUESTION_INDEX.get(body.question_id)
    if question is None:
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")
    explanations = question["explanations_pl"] if body.lang == "pl" else question["explanations_en"]
    return {
        "isCorrect": is_correct(question, body.selected),
        "correctOptionIds": list(question["correct"]),
        "explanations": explanations,
    }
