"""
services/snapshot_store.py

진행 중인 시험 세션을 로컬 슬롯에 저장/복원한다 (재시작 복구용).

저장소는 best-effort:
  - 모든 읽기/쓰기 실패는 잡아서 False/None으로 돌려준다.
  - 슬롯을 쓸 수 없으면 available=False 로 표시하고 메모리 전용으로 동작한다.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Dict, Optional

from pydantic import ValidationError

from config import SNAPSHOT_DIR, SNAPSHOT_KEY
from exam_engine.errors import RecoveryCorrupt
from exam_engine.models.session_state import ExamSession

logger = logging.getLogger(__name__)


class MemorySlot:
    """프로세스 내부 dict 슬롯. 테스트 및 메모리 전용 모드에서 사용."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def check(self) -> bool:
        return True

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, payload: str) -> None:
        self._data[key] = payload

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileSlot:
    """디렉토리 안에 키마다 JSON 파일 하나를 두는 슬롯."""

    def __init__(self, directory: str = SNAPSHOT_DIR) -> None:
        self.directory = directory

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def check(self) -> bool:
        os.makedirs(self.directory, exist_ok=True)
        return os.access(self.directory, os.W_OK)

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def write(self, key: str, payload: str) -> None:
        # 임시 파일에 쓴 뒤 교체. 중간에 죽어도 이전 스냅샷은 온전하다
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self._path(key))
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def remove(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)


class SnapshotStore:
    def __init__(self, slot=None, key: str = SNAPSHOT_KEY) -> None:
        self.slot = slot if slot is not None else FileSlot()
        self.key = key
        self.available = self._probe()

    def _probe(self) -> bool:
        try:
            ok = bool(self.slot.check())
        except OSError as e:
            logger.warning(f"스냅샷 저장소 사용 불가, 메모리 전용으로 동작: {e}")
            return False
        if not ok:
            logger.warning("스냅샷 저장소에 쓸 수 없음, 메모리 전용으로 동작")
        return ok

    def save(self, session: ExamSession) -> bool:
        """세션 전체를 고정 키 슬롯에 덮어쓴다 (마지막 쓰기 우선)."""
        if not self.available:
            return False
        try:
            payload = session.model_dump_json()
            self.slot.write(self.key, payload)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"스냅샷 저장 실패: {e}")
            return False
        return True

    def read(self) -> Optional[ExamSession]:
        """
        슬롯을 읽어 세션으로 복원한다. 손상된 내용은 RecoveryCorrupt.

        Returns:
            슬롯이 비어 있으면 None.
        """
        try:
            raw = self.slot.read(self.key)
        except (OSError, UnicodeDecodeError) as e:
            raise RecoveryCorrupt(f"스냅샷 읽기 실패: {e}") from e
        if not raw:
            return None
        try:
            return ExamSession.model_validate_json(raw)
        except ValidationError as e:
            raise RecoveryCorrupt(f"스냅샷 구조 오류 ({e.error_count()}개)") from e

    def load(self) -> Optional[ExamSession]:
        """
        read()의 관대한 버전.

        Returns:
            슬롯이 비었거나 내용이 손상되었으면 None ("새로 시작"으로 해석).
        """
        if not self.available:
            return None
        try:
            return self.read()
        except RecoveryCorrupt as e:
            logger.info(f"손상된 스냅샷 무시: {e}")
            return None

    def clear(self) -> bool:
        if not self.available:
            return False
        try:
            self.slot.remove(self.key)
        except OSError as e:
            logger.warning(f"스냅샷 삭제 실패: {e}")
            return False
        return True
