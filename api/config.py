import os

# 사용자 식별 쿠키
USER_COOKIE = "exam_user"
SESSION_TTL = int(os.getenv("EXAM_SESSION_TTL", "86400"))  # 24시간

# 시험 생성 제한
MAX_QUESTION_COUNT = 200
MAX_DURATION_SEC = 6 * 3600

# 채점 기준
PASS_PERCENT = 70.0
