"""
main.py — 참조용 원격 시험 서비스 실행 진입점

시험 엔진(exam_engine)을 로컬에서 붙여 볼 수 있도록 서버를 띄운다.
"""

import os
import sys
import logging
import traceback

# ── 패키지 경로 설정 (반드시 최상단) ──────────────────────────────────────────
_BASE_DIR = os.path.dirname(os.path.abspath(__file__))
if _BASE_DIR not in sys.path:
    sys.path.insert(0, _BASE_DIR)

from config import BASE_DIR, LOG_FILE, DEFAULT_HOST, DEFAULT_PORT

# ── 로깅 설정 ────────────────────────────────────────────────────────────────
try:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(LOG_FILE, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )
except PermissionError:
    # 로그 파일 점유 시 콘솔 출력만 사용
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


def _start_server(host: str, port: int) -> None:
    try:
        import uvicorn
        from api.app import create_app
        logger.info(f"Uvicorn 서버 시작 - {host}:{port}")
        app = create_app()
        uvicorn.run(app, host=host, port=port, log_level="warning")
    except Exception:
        logger.error(f"서버 오류 발생:\n{traceback.format_exc()}")


# ── 메인 실행 ────────────────────────────────────────────────────────────────

def main() -> None:
    logger.info("=== Exam Service Started ===")
    os.chdir(BASE_DIR)
    try:
        _start_server(DEFAULT_HOST, DEFAULT_PORT)
    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료되었습니다.")


if __name__ == "__main__":
    main()
