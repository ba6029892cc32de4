"""
api/session.py — 사용자별 인메모리 시험 기록 저장소 (쿠키 기반)

각 사용자에게 UUID 사용자 ID를 발급하고, 사용자별 시험 기록을 보관한다.
TTL(기본 24시간) 동안 접근이 없으면 사용자와 기록을 함께 정리한다.
"""

import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from api.config import SESSION_TTL

_lock = threading.Lock()
_users: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_user() -> str:
    """새 사용자를 생성하고 사용자 ID를 반환."""
    uid = uuid.uuid4().hex
    with _lock:
        _users[uid] = {"exams": {}}
        _timestamps[uid] = time.time()
    return uid


def has_user(uid: str) -> bool:
    """사용자 존재 여부. 만료되었으면 정리 후 False."""
    with _lock:
        if uid not in _users:
            return False
        if time.time() - _timestamps[uid] > SESSION_TTL:
            del _users[uid]
            del _timestamps[uid]
            return False
        _timestamps[uid] = time.time()  # 접근 시 갱신
        return True


def create_exam(uid: str, question_ids: list[str], duration_sec: int) -> dict[str, Any]:
    """시험 기록을 만들고 반환. exam_id는 UUID."""
    record = {
        "exam_id": uuid.uuid4().hex,
        "question_ids": list(question_ids),
        "duration_sec": duration_sec,
        "started_at": _now_iso(),
        "finished_at": None,
        "answers": {},
        "result": None,
    }
    with _lock:
        _users.setdefault(uid, {"exams": {}})["exams"][record["exam_id"]] = record
        _timestamps[uid] = time.time()
    return record


def get_exam(uid: str, exam_id: str) -> dict[str, Any] | None:
    with _lock:
        user = _users.get(uid)
        if user is None:
            return None
        return user["exams"].get(exam_id)


def list_exams(uid: str) -> list[dict[str, Any]]:
    """시작 시각 역순 (최근 시험 먼저)."""
    with _lock:
        user = _users.get(uid)
        if user is None:
            return []
        exams = list(user["exams"].values())
    return sorted(exams, key=lambda r: r["started_at"], reverse=True)


def put_answer(uid: str, exam_id: str, question_id: str, selected: list[str]) -> bool:
    """(exam_id, question_id) 기준 upsert. 종료된 시험이면 False."""
    with _lock:
        record = _users.get(uid, {}).get("exams", {}).get(exam_id)
        if record is None or record["finished_at"] is not None:
            return False
        record["answers"][question_id] = sorted(set(selected))
        _timestamps[uid] = time.time()
        return True


def close_exam(uid: str, exam_id: str, result: dict[str, Any]) -> bool:
    """시험 종료 기록. 이미 종료되었으면 False."""
    with _lock:
        record = _users.get(uid, {}).get("exams", {}).get(exam_id)
        if record is None or record["finished_at"] is not None:
            return False
        record["finished_at"] = _now_iso()
        record["result"] = result
        return True


def reset() -> None:
    """모든 사용자/기록 삭제 (테스트용)."""
    with _lock:
        _users.clear()
        _timestamps.clear()


def cleanup_expired() -> int:
    """만료된 사용자를 정리. 제거된 수 반환."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [uid for uid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for uid in expired:
            del _users[uid]
            del _timestamps[uid]
            removed += 1
    return removed
