# app/services/utils.py
# 레시피 이름 정규화/식별자 유틸
# - "  Chicken Tikka-Masala!! " → "chicken tikkamasala" 같은 검색 키로 수렴
# - 정규화된 이름의 md5 → 레시피 문서 _id (기존 저장 데이터와 호환)

from __future__ import annotations
import hashlib
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import quote

# \w는 ASCII 기준으로 고정 (플랫폼마다 id가 달라지지 않도록)
_STRIP_RE = re.compile(r"[^A-Za-z0-9_\s]")
_SPACE_RE = re.compile(r"\s+")

YOUTUBE_RESULTS_URL = "https://www.youtube.com/results?search_query="
VIDEO_QUERY_SUFFIX = "recipe cooking tutorial"

def normalize_recipe_name(name: Any) -> str:

    # 사용자 입력 → 검색 키
    # 1) 앞뒤 공백 제거/소문자 → 특수문자 제거 → 다중 공백 정리
    # 2) 문자열이 아니거나 결과가 비면 "" (호출부에서 검증 오류로 처리)

    if not name or not isinstance(name, str):
        return ""
    s = name.strip().lower()
    s = _STRIP_RE.sub("", s)
    s = _SPACE_RE.sub(" ", s)
    return s.strip()

def generate_recipe_id(normalized_name: str) -> str:
    # 콘텐츠 주소형 id: 같은 정규화 이름 → 항상 같은 32자리 hex
    return hashlib.md5(normalized_name.encode("utf-8")).hexdigest()

def _as_utc(dt: datetime) -> datetime:
    # Mongo는 naive UTC로 돌려준다
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt

def is_recipe_fresh(
    last_searched: Optional[datetime],
    max_age_hours: Optional[float],
    now: Optional[datetime] = None,
) -> bool:
    """max_age_hours가 None이면 항상 신선, lastSearched가 없으면 항상 오래된 것으로 본다."""
    if max_age_hours is None:
        return True
    if not last_searched:
        return False
    now = _as_utc(now or datetime.now(timezone.utc))
    age_hours = (now - _as_utc(last_searched)).total_seconds() / 3600
    return age_hours < max_age_hours

def video_search_query(recipe_name: str) -> str:
    return f"{recipe_name} {VIDEO_QUERY_SUFFIX}"

def youtube_search_url(recipe_name: str) -> str:
    # encodeURIComponent 와 같은 규칙 (공백 → %20)
    return YOUTUBE_RESULTS_URL + quote(video_search_query(recipe_name), safe="-_.!~*'()")

def calculate_active_cooking_time(steps: Iterable[Mapping[str, Any]]) -> int:
    # timeMinutes가 있는 단계(굽기/끓이기 등)만 합산
    total = 0.0
    for step in steps or []:
        minutes = step.get("timeMinutes") if isinstance(step, Mapping) else None
        if isinstance(minutes, (int, float)) and not isinstance(minutes, bool):
            total += minutes
    return int(round(total))
