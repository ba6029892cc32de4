import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.path.join(BASE_DIR, "launch.log")
SNAPSHOT_DIR = os.getenv("EXAM_SNAPSHOT_DIR", os.path.join(BASE_DIR, ".exam_state"))
SNAPSHOT_KEY = "exam_state_v1"  # 진행 중인 시험 하나만 보관하는 고정 슬롯 키

# 서버 설정 (참조용 원격 시험 서비스)
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 원격 시험 서비스 클라이언트 설정
EXAM_API_BASE = os.getenv("EXAM_API_BASE", f"http://{DEFAULT_HOST}:{DEFAULT_PORT}/api/v1")
DEFAULT_TIMEOUT = float(os.getenv("EXAM_API_TIMEOUT", "15.0"))

# 시험 기본값
DEFAULT_QUESTION_COUNT = 80
DEFAULT_DURATION_SEC = 10800    # 3시간 (실제 값은 서버 응답 기준)

# 타이머 / 네비게이션
TICK_INTERVAL_SEC = 1.0
PAGE_WINDOW_SIZE = 5

# 최종 제출 재시도 (0이면 사용자가 직접 재시도)
FINISH_RETRY_ATTEMPTS = int(os.getenv("FINISH_RETRY_ATTEMPTS", "0"))
FINISH_RETRY_BACKOFF = float(os.getenv("FINISH_RETRY_BACKOFF", "1.0"))  # 초, 시도마다 2배
