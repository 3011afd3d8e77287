# 환경변수 로딩 (.env)
from typing import List, Optional

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"  # 필요 시 prod/staging로 분리
    MONGO_DB: str = "recipes"

    # LLM (키 없으면 생성은 폴백 레시피, 추천어는 빈 배열)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    LLM_TEMPERATURE: float = 0.7
    LLM_TIMEOUT_SECONDS: float = 30.0

    # YouTube Data API (키 없으면 영상 기능만 비활성)
    YOUTUBE_API_KEY: Optional[str] = None
    VIDEO_TIMEOUT_SECONDS: float = 10.0

    # Bearer 토큰 검증
    # 비어 있으면 모든 토큰 거부
    AUTH_SECRET_KEY: Optional[str] = None
    AUTH_ALGORITHM: str = "HS256"
    AUTH_USER_CLAIM: str = "sub"

    # 캐시 신선도(시간). None이면 캐시를 항상 신선한 것으로 본다
    RECIPE_FRESHNESS_HOURS: Optional[float] = None

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]
    PORT: int = 3001
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
