# app/services/llm.py
# OpenAI Chat Completions 기반 레시피 생성/추천어/영상 분석
# - 생성 실패는 예외 대신 폴백 레시피로 수렴 (요청을 500으로 끝내지 않는다)
# - JSON 파싱은 최대한 안전하게, 응답 모양 차이는 정해진 순서로만 흡수

from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from openai import AsyncOpenAI

from app.core.config import Settings
from app.models.schemas import RecipeDraft
from app.services.draft import fallback_draft, repair_draft

log = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5

RECIPE_SYSTEM = "You are a professional chef assistant that creates detailed, accurate recipes in JSON format."
SUGGEST_SYSTEM = (
    "You are a helpful cooking assistant that suggests recipe names based on user queries. "
    "Always return valid JSON."
)
VIDEO_SYSTEM = (
    "You are a professional chef assistant that analyzes cooking videos to enhance recipes "
    "with practical cooking insights and techniques."
)

RECIPE_PROMPT = """Return the recipe for "{name}" with these fields in JSON format:
- ingredients (array of {{ name, quantity, unit }})
- steps (array of {{ description, timeMinutes (optional for cooking/waiting steps) }})
- difficulty (string: "Easy", "Medium", or "Hard")
- estimatedTime (total time in minutes)
- servings (number of servings)

Highlight steps with 'timeMinutes' for cooking/waiting steps like baking, simmering, etc.

Example format:
{{
  "ingredients": [
    {{"name": "flour", "quantity": "2", "unit": "cups"}},
    {{"name": "eggs", "quantity": "3", "unit": "pieces"}}
  ],
  "steps": [
    {{"description": "Preheat oven to 350°F", "timeMinutes": 10}},
    {{"description": "Mix flour and eggs in a bowl"}},
    {{"description": "Bake for 25 minutes", "timeMinutes": 25}}
  ],
  "difficulty": "Easy",
  "estimatedTime": 45,
  "servings": 4
}}

Return only valid JSON, no additional text."""

SUGGEST_PROMPT = """Based on the user's search query "{query}", provide up to 5 recipe title suggestions that are most likely what they're looking for.

Rules:
- Correct any obvious typos or misspellings
- If the query is very general (like "chicken"), suggest popular variations
- Return realistic, popular recipe names
- Prioritize common and well-known recipes
- Return only the recipe titles, nothing else

Examples:
Query: "parmedan chicken" → {{"suggestions": ["Parmesan Chicken", "Chicken Parmesan", "Baked Parmesan Chicken", "Crispy Parmesan Chicken", "Parmesan Crusted Chicken"]}}
Query: "pasta" → {{"suggestions": ["Spaghetti Carbonara", "Chicken Alfredo Pasta", "Penne Arrabbiata", "Lasagna", "Mac and Cheese"]}}

Return only a JSON object of the form {{"suggestions": [string, ...]}}, no additional text."""

VIDEO_PROMPT = """You are analyzing a cooking video tutorial to enhance a recipe. Here's the original recipe and video information:

ORIGINAL RECIPE:
Title: {title}
Ingredients: {ingredients}
Instructions:
{steps}

VIDEO INFORMATION:
Title: {video_title}
Channel: {channel}
Description: {description}

Please analyze this video tutorial and enhance the original recipe instructions with insights that would likely come from watching the video. Focus on:
1. Additional cooking tips or techniques
2. Temperature details or timing adjustments
3. Visual cues to look for
4. Common mistakes to avoid
5. Professional techniques

Return a JSON object with enhanced instructions that incorporate video-based insights:
{{
  "enhancedSteps": [
    {{"description": "enhanced instruction with video insights", "timeMinutes": 10, "videoTip": "specific tip from video analysis"}}
  ],
  "videoInsights": ["Key insight 1 from video", "Key insight 2 from video"],
  "enhancedBy": "{video_title}"
}}

Return only valid JSON."""

# 추천어 응답 모양 (우선순위 순). 첫 번째가 프롬프트로 요청한 모양
SUGGESTION_KEYS: Sequence[Optional[str]] = ("suggestions", None, "recipes", "titles", "results")

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.I)


class LLMNotReady(Exception):
    # LLM 기능 준비 미완(키 없음)
    pass


def parse_json_text(text: Optional[str]) -> Any:
    # ```json ... ``` 코드펜스가 섞여 와도 본문만 파싱
    if not text or not text.strip():
        raise ValueError("LLM returned empty text")
    return json.loads(_FENCE_RE.sub("", text.strip()))

def pick_suggestions(obj: Any) -> List[str]:
    """
    허용된 응답 모양을 정해진 순서로 시도:
      {"suggestions": [...]} → [...] → {"recipes"|"titles"|"results": [...]}
    1순위가 아닌 모양이 맞으면 경고 로그를 남겨 상류 스키마 변화를 드러낸다.
    """
    for i, key in enumerate(SUGGESTION_KEYS):
        if key is None:
            items = obj if isinstance(obj, list) else None
        else:
            items = obj.get(key) if isinstance(obj, dict) else None
        if not isinstance(items, list):
            continue
        if i > 0:
            log.warning("suggestions matched non-primary shape: %s", key or "bare array")
        return [s.strip() for s in items if isinstance(s, str) and s.strip()][:MAX_SUGGESTIONS]
    log.warning("suggestions shape not recognized: %s", type(obj).__name__)
    return []


class RecipeLLM:
    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None) -> None:
        self.model = settings.OPENAI_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        if client is None and settings.OPENAI_API_KEY:
            # 재시도 없음, 타임아웃은 폴백으로 처리
            client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
        if client is None:
            log.warning("OPENAI_API_KEY not set; recipe generation will return fallback drafts")
        self.client = client

    async def _complete(self, system: str, prompt: str, *, max_tokens: int) -> str:
        if self.client is None:
            raise LLMNotReady("OPENAI_API_KEY not set")
        chat = await self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            max_tokens=max_tokens,
        )
        text = chat.choices[0].message.content if chat and chat.choices else ""
        return (text or "").strip()

    async def generate_recipe(self, name: str) -> RecipeDraft:
        try:
            text = await self._complete(RECIPE_SYSTEM, RECIPE_PROMPT.format(name=name), max_tokens=1500)
            return repair_draft(parse_json_text(text))
        except Exception as e:
            # 호출 실패/타임아웃/JSON 아님/보정 불가 → 모두 폴백
            log.exception("recipe generation failed for %r: %s", name, e)
            return fallback_draft(str(e))

    async def suggest_recipes(self, query: str) -> List[str]:
        try:
            text = await self._complete(SUGGEST_SYSTEM, SUGGEST_PROMPT.format(query=query), max_tokens=200)
            return pick_suggestions(parse_json_text(text))
        except Exception as e:
            log.warning("recipe suggestions failed for %r: %s", query, e)
            return []

    async def analyze_video_tutorial(self, recipe: Mapping[str, Any], video: Mapping[str, Any]) -> Dict[str, Any]:
        steps = recipe.get("steps") or []
        video_title = video.get("title") or "Unknown Video"
        prompt = VIDEO_PROMPT.format(
            title=recipe.get("displayName") or "",
            ingredients=", ".join(
                f"{i.get('quantity', '')} {i.get('unit', '')} {i.get('name', '')}".strip()
                for i in recipe.get("ingredients") or []
            ),
            steps="\n".join(f"{n}. {s.get('description', '')}" for n, s in enumerate(steps, 1)),
            video_title=video_title,
            channel=video.get("channelTitle") or "Unknown Channel",
            description=video.get("description") or "No description available",
        )
        try:
            obj = parse_json_text(await self._complete(VIDEO_SYSTEM, prompt, max_tokens=1500))
            if not isinstance(obj, dict) or not isinstance(obj.get("enhancedSteps"), list):
                raise ValueError("video analysis missing enhancedSteps")
            obj.setdefault("videoInsights", [])
            obj.setdefault("enhancedBy", video_title)
            return obj
        except Exception as e:
            log.exception("video analysis failed: %s", e)
            return {
                "enhancedSteps": list(steps),
                "videoInsights": ["Video analysis temporarily unavailable. Original recipe instructions preserved."],
                "enhancedBy": video_title,
                "error": str(e),
            }
