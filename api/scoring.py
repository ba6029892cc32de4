"""
api/scoring.py

시험 채점 및 결과 정리 로직 (참조 서비스 전용).
순수 Python 함수로 구성: 전역 상태 변경 없음.
"""

from typing import Any, Dict, List

from api.config import PASS_PERCENT


def is_correct(question: Dict[str, Any], selected: List[str]) -> bool:
    """
    정답 판정 기준: 선택한 보기 집합 == 정답 집합.
    응답하지 않은 문제(빈 선택)는 오답으로 처리.
    """
    return bool(selected) and set(selected) == set(question["correct"])


def review_items(
    questions: List[Dict[str, Any]],
    answers: Dict[str, List[str]],
) -> List[Dict[str, Any]]:
    """
    문제별 리뷰 항목 (camelCase). 원본 순서 유지.
    """
    items = []
    for q in questions:
        selected = answers.get(q["id"], [])
        items.append({
            "questionId": q["id"],
            "questionText": q["question_text"],
            "selected": list(selected),
            "correct": list(q["correct"]),
            "explanationsEn": q.get("explanations_en", {}),
            "explanationsPl": q.get("explanations_pl", {}),
            "wasCorrect": is_correct(q, selected),
        })
    return items


def calculate_result(
    questions: List[Dict[str, Any]],
    answers: Dict[str, List[str]],
) -> Dict[str, Any]:
    """
    사용자 답안을 채점하여 결과 요약을 반환한다.

    Returns:
        {"scorePercent": float, "correct": int, "wrong": int,
         "passed": bool | None, "items": [...]}
        문제가 없으면 점수 0.0, passed는 None.
    """
    items = review_items(questions, answers)
    correct = sum(1 for item in items if item["wasCorrect"])
    wrong = len(items) - correct
    if not items:
        return {"scorePercent": 0.0, "correct": 0, "wrong": 0, "passed": None, "items": []}

    score = round(correct / len(items) * 100, 2)
    return {
        "scorePercent": score,
        "correct": correct,
        "wrong": wrong,
        "passed": is_passed(score),
        "items": items,
    }


def is_passed(score: float, pass_score: float = PASS_PERCENT) -> bool:
    """
    합격 여부를 반환한다.

    Args:
        score:      calculate_result()가 반환한 점수 (0.0 ~ 100.0).
        pass_score: 합격 기준 점수.
    """
    return score >= pass_score
