import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "launch.log"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
DEFAULT_TIMEOUT = 15.0

# 세션 설정
SESSION_TTL = int(os.getenv("SESSION_TTL", "3600"))     # 1시간
SESSION_CLEANUP_INTERVAL = 300                          # 만료 세션 정리 주기 (초)

# 시계 설정
CLOCK_TICK_SECONDS = float(os.getenv("CLOCK_TICK_SECONDS", "1.0"))

# 문제별 제한 시간 설정 (초)
MCQ_BASE_SECONDS = 30           # 객관식 기본 시간
OPEN_BASE_SECONDS = 10          # 그 외 유형 기본 시간
MIN_QUESTION_SECONDS = 5        # 적응형 감소 후 최소 시간
MAX_ADAPTIVE_REDUCTION = 5      # 적응형 감소 상한

# 시험 기본값
DEFAULT_EXAM_MINUTES = 60
DEFAULT_QUESTION_POINTS = 10
