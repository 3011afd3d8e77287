# app/services/draft.py
# LLM이 돌려준 느슨한 레시피 JSON → 표준 스키마(RecipeDraft) 보정
# - 재료: 문자열("2 cups flour") 또는 객체({name, quantity, unit}) 둘 다 허용
# - 단계: 문자열 또는 {description, timeMinutes?}
# - 보정 불가하면 DraftInvalid → 호출부에서 폴백 레시피로 대체

from __future__ import annotations
import math
from functools import singledispatch
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from app.models.schemas import Ingredient, RecipeDraft, RecipeStep

# 누락 필드 기본값 (필드 추가 시 여기만 늘리면 됨)
INGREDIENT_DEFAULTS: Dict[str, str] = {
    "name": "Unknown ingredient",
    "quantity": "1",
    "unit": "piece",
}
DEFAULT_SERVINGS = 4

FALLBACK_INGREDIENT = {"name": "OpenAI service error", "quantity": "1", "unit": "error"}
FALLBACK_STEP = {"description": "There was an error generating the recipe. Please try again later."}


class DraftInvalid(ValueError):
    # 보정으로도 표준 스키마를 만들 수 없는 응답
    pass


def fallback_draft(message: str) -> RecipeDraft:
    """생성 실패 시 저장/응답에 그대로 쓰는 고정 레시피. error 필드에 원인을 남긴다."""
    return RecipeDraft(
        ingredients=[Ingredient(**FALLBACK_INGREDIENT)],
        steps=[RecipeStep(**FALLBACK_STEP)],
        difficulty="Unknown",
        estimatedTime=0,
        servings=1,
        error=message or "unknown error",
    )

def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)

def _text(v: Any) -> Optional[str]:
    # 문자열/숫자 → 공백 정리된 문자열, 비어 있으면 None
    if _is_number(v):
        return str(v)
    if isinstance(v, str) and v.strip():
        return v.strip()
    return None

# ------------------------------
# 재료 보정
# ------------------------------

@singledispatch
def coerce_ingredient(raw: Any) -> Ingredient:
    raise DraftInvalid(f"unsupported ingredient entry: {type(raw).__name__}")

@coerce_ingredient.register
def _(raw: str) -> Ingredient:
    tokens = raw.split()
    if not tokens:
        raise DraftInvalid("empty ingredient text")
    if len(tokens) < 3:
        return Ingredient(name=" ".join(tokens), quantity="1", unit="piece")
    # "2 cups flour" → quantity=2, unit=cups, name=flour
    return Ingredient(quantity=tokens[0], unit=tokens[1], name=" ".join(tokens[2:]))

@coerce_ingredient.register
def _(raw: dict) -> Ingredient:
    fields = {k: (_text(raw.get(k)) or default) for k, default in INGREDIENT_DEFAULTS.items()}
    return Ingredient(**fields)

# ------------------------------
# 단계 보정
# ------------------------------

def _minutes(v: Any) -> Optional[float]:
    if isinstance(v, str):
        try:
            v = float(v.strip())
        except ValueError:
            return None
    if not _is_number(v) or not math.isfinite(v) or v <= 0:
        return None
    return int(v) if float(v).is_integer() else v

@singledispatch
def coerce_step(raw: Any) -> RecipeStep:
    raise DraftInvalid(f"unsupported step entry: {type(raw).__name__}")

@coerce_step.register
def _(raw: str) -> RecipeStep:
    if not raw.strip():
        raise DraftInvalid("empty step text")
    return RecipeStep(description=raw.strip())

@coerce_step.register
def _(raw: dict) -> RecipeStep:
    desc = raw.get("description")
    # description 없는 단계는 보정 불가
    if not isinstance(desc, str) or not desc.strip():
        raise DraftInvalid("step without description")
    return RecipeStep(description=desc.strip(), timeMinutes=_minutes(raw.get("timeMinutes")))

# ------------------------------
# 전체 보정 + 검증
# ------------------------------

def _non_empty_list(payload: Mapping[str, Any], key: str) -> List[Any]:
    v = payload.get(key)
    if not isinstance(v, list) or not v:
        raise DraftInvalid(f"invalid or missing {key}")
    return v

def repair_draft(payload: Any) -> RecipeDraft:
    """
    LLM 응답(dict) → RecipeDraft.
    이미 표준 스키마인 입력은 그대로 돌려준다 (repair_draft(d.model_dump()) == d).
    """
    if not isinstance(payload, Mapping):
        raise DraftInvalid("recipe payload is not an object")

    ingredients = [coerce_ingredient(x) for x in _non_empty_list(payload, "ingredients")]
    steps = [coerce_step(x) for x in _non_empty_list(payload, "steps")]

    difficulty = payload.get("difficulty")
    if not isinstance(difficulty, str) or not difficulty.strip():
        raise DraftInvalid("invalid or missing difficulty")

    est = payload.get("estimatedTime")
    if not _is_number(est) or not math.isfinite(est) or est < 0:
        raise DraftInvalid("invalid or missing estimatedTime")

    servings = payload.get("servings")
    servings = int(round(servings)) if _is_number(servings) and math.isfinite(servings) else 0
    if servings <= 0:
        servings = DEFAULT_SERVINGS

    try:
        return RecipeDraft(
            ingredients=ingredients,
            steps=steps,
            difficulty=difficulty.strip(),
            estimatedTime=int(round(est)),
            servings=servings,
            error=payload.get("error") if isinstance(payload.get("error"), str) else None,
        )
    except ValidationError as e:
        raise DraftInvalid(str(e)) from e
