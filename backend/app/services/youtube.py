# app/services/youtube.py
# YouTube Data API v3: 레시피 관련 영상 검색/상세 조회
# 의존: httpx
# - 검색(search) → 상세(videos: 길이/통계) → 60초 이하는 쇼츠로 분리
# - 키 없음/API 오류는 빈 결과로 수렴 (요청 실패로 올리지 않음)

from __future__ import annotations
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import Settings
from app.services.utils import video_search_query

log = logging.getLogger(__name__)

YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
SHORT_MAX_SECONDS = 60
MAX_REGULAR = 5
MAX_SHORTS = 8

# PT#H#M#S (각 부분 생략 가능)
_DURATION_RE = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")

def parse_iso_duration(duration: Optional[str]) -> Optional[int]:
    # "PT1M5S" → 65, 형식이 다르면 None
    m = _DURATION_RE.match((duration or "").strip())
    if not m or duration.strip() == "PT":
        return None
    h, mi, s = (int(x) if x else 0 for x in m.groups())
    return h * 3600 + mi * 60 + s

def is_youtube_short(duration: Optional[str]) -> bool:
    secs = parse_iso_duration(duration)
    return secs is not None and secs <= SHORT_MAX_SECONDS

def _to_video(item: Dict[str, Any]) -> Dict[str, Any]:
    snippet = item.get("snippet") or {}
    stats = item.get("statistics") or {}
    return {
        "videoId": item.get("id") or "",
        "title": snippet.get("title") or "Unknown Title",
        "description": snippet.get("description") or "",
        "channelTitle": snippet.get("channelTitle") or "Unknown Channel",
        "publishedAt": snippet.get("publishedAt"),
        "thumbnails": snippet.get("thumbnails"),
        "duration": (item.get("contentDetails") or {}).get("duration") or "",
        "viewCount": str(stats.get("viewCount") or "0"),
        "likeCount": str(stats.get("likeCount") or "0"),
    }

def _empty() -> Dict[str, List[Dict[str, Any]]]:
    return {"regularVideos": [], "shorts": []}


class YouTubeNotReady(Exception):
    # API 키 없음
    pass


class YouTubeClient:
    def __init__(self, settings: Settings, http: Optional[httpx.AsyncClient] = None) -> None:
        self.api_key = settings.YOUTUBE_API_KEY
        self.http = http or httpx.AsyncClient(
            base_url=YOUTUBE_API_BASE_URL,
            timeout=settings.VIDEO_TIMEOUT_SECONDS,
        )
        if not self.api_key:
            log.warning("YOUTUBE_API_KEY not set; video lookups will return empty results")

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise YouTubeNotReady("YouTube API key not configured")
        r = await self.http.get(path, params={"key": self.api_key, **params})
        r.raise_for_status()
        return r.json()

    async def _details(self, video_ids: List[str]) -> List[Dict[str, Any]]:
        data = await self._get("/videos", {
            "id": ",".join(video_ids),
            "part": "snippet,contentDetails,statistics",
        })
        return [_to_video(it) for it in data.get("items") or []]

    async def search_recipe_videos(self, recipe_name: str, max_results: int = 10) -> Dict[str, List[Dict[str, Any]]]:
        try:
            data = await self._get("/search", {
                "q": video_search_query(recipe_name),
                "type": "video",
                "part": "snippet",
                "maxResults": max_results,
                "order": "relevance",
                "videoDuration": "any",
                "safeSearch": "strict",
            })
            ids = [
                (it.get("id") or {}).get("videoId")
                for it in data.get("items") or []
            ]
            ids = [i for i in ids if i]
            if not ids:
                log.info("no videos found for recipe: %s", recipe_name)
                return _empty()

            videos = await self._details(ids)
        except YouTubeNotReady as e:
            log.warning("video search skipped: %s", e)
            return _empty()
        except (httpx.HTTPError, ValueError) as e:
            log.exception("YouTube search failed for %r: %s", recipe_name, e)
            return _empty()

        regular, shorts = [], []
        for v in videos:
            (shorts if is_youtube_short(v["duration"]) else regular).append(v)

        log.info("found %d regular videos and %d shorts for recipe: %s", len(regular), len(shorts), recipe_name)
        return {"regularVideos": regular[:MAX_REGULAR], "shorts": shorts[:MAX_SHORTS]}

    async def get_video_details(self, video_id: str) -> Optional[Dict[str, Any]]:
        try:
            videos = await self._details([video_id])
        except YouTubeNotReady as e:
            log.warning("video details skipped: %s", e)
            return None
        except (httpx.HTTPError, ValueError) as e:
            log.exception("YouTube details failed for %s: %s", video_id, e)
            return None
        return videos[0] if videos else None
