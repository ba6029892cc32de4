"""
errors.py — 시험 엔진 예외 분류

원격 호출 실패는 각 작업 경계에서 잡혀 EngineStatus.error 로 변환된다.
이벤트 루프까지 전파되는 예외는 없다.
"""

from typing import Optional


class ExamEngineError(Exception):
    """엔진 예외 기본 클래스."""

    kind = "error"


class RemoteError(ExamEngineError):
    """원격 시험 서비스 호출 실패 (네트워크 오류 또는 비정상 HTTP 응답)."""

    kind = "remote"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StartFailed(RemoteError):
    """시험 시작 실패. 기존 세션 상태는 그대로 유지된다."""

    kind = "start_failed"


class SubmitFailed(RemoteError):
    """문제 단위 답안 저장 실패. 일시적이며 치명적이지 않다."""

    kind = "submit_failed"


class FinishFailed(RemoteError):
    """최종 제출 실패. 세션은 FINISHING 상태로 남아 재시도 가능."""

    kind = "finish_failed"


class RemoteUnavailable(RemoteError):
    """리뷰/이력 등 읽기 전용 조회 실패. 세션 상태에 영향 없음."""

    kind = "remote_unavailable"


class RecoveryCorrupt(ExamEngineError):
    """스냅샷을 읽을 수 없음. 사용자에게 노출하지 않고 '세션 없음'으로 처리."""

    kind = "recovery_corrupt"
