"""
services/exam_service.py

진행 현황/표시용 계산 로직.
순수 Python 함수로 구성: UI 코드, 전역 상태 변경 없음.
채점은 원격 서비스 책임이므로 여기서 하지 않는다.
"""

from typing import Dict, List

from exam_engine.models.session_state import ExamSession


def is_answered(session: ExamSession, index: int) -> bool:
    """
    index번 문제에 선택된 보기가 하나라도 있는지 반환한다.

    범위를 벗어난 인덱스는 False.
    """
    if not (0 <= index < len(session.questions)):
        return False
    selected = session.selections.get(session.questions[index].id, {})
    return any(selected.values())


def unanswered_indices(session: ExamSession) -> List[int]:
    """
    미응답 문제 인덱스 리스트 (최종 제출 확인용). 원본 순서 유지.
    """
    return [i for i in range(len(session.questions)) if not is_answered(session, i)]


def progress_percent(session: ExamSession) -> int:
    """
    현재 위치 기준 진행률 (%).

    문제가 없으면 분모를 1로 본다.
    """
    n = len(session.questions) or 1
    return round((session.current_index + 1) / n * 100)


def progress_summary(session: ExamSession) -> Dict[str, int]:
    """
    Returns:
        {"total": int, "answered": int, "unanswered": int, "saved": int}
    """
    total = len(session.questions)
    unanswered = len(unanswered_indices(session))
    saved = sum(1 for i, ok in session.saved_marks.items() if ok and 0 <= i < total)
    return {
        "total": total,
        "answered": total - unanswered,
        "unanswered": unanswered,
        "saved": saved,
    }


def format_time(seconds: int) -> str:
    """
    남은 시간을 HH:MM:SS 문자열로 변환한다. 음수는 0으로 본다.
    """
    s = max(0, int(seconds))
    h = s // 3600
    m = (s % 3600) // 60
    sec = s % 60
    return f"{h:02d}:{m:02d}:{sec:02d}"


def is_warning(seconds: int, threshold: int = 600) -> bool:
    """남은 시간이 threshold초(기본 10분) 미만이면 경고 표시."""
    return seconds < threshold
