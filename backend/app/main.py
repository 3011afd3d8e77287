# app/main.py
# FastAPI 앱 초기화 및 라우터 설정
# 외부 어댑터(Mongo/OpenAI/YouTube/토큰 검증)는 시작 시 한 번 만들어 app.state에 올린다

from __future__ import annotations

import logging
from asyncio import sleep
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.routes_recipes import popular as popular_router
from app.api.routes_recipes import router as recipes_router
from app.api.routes_users import router as users_router
from app.core.config import Settings, settings
from app.core.security import TokenVerifier
from app.db.indexes import ensure_indexes
from app.db.init import close_db, init_db
from app.db.repository import LikeRepository, RecipeRepository
from app.models.schemas import HealthOut
from app.services.likes import LikeService
from app.services.llm import RecipeLLM
from app.services.resolver import RecipeResolver
from app.services.youtube import YouTubeClient

log = logging.getLogger(__name__)

DB_INIT_RETRIES = 20

def attach_services(
    app: FastAPI,
    db: AsyncIOMotorDatabase,
    cfg: Settings,
    *,
    llm: Optional[RecipeLLM] = None,
    videos: Optional[YouTubeClient] = None,
    verifier: Optional[TokenVerifier] = None,
) -> None:
    # 라우터는 app.state에서만 꺼내 쓴다 (테스트에서 가짜로 교체 가능)
    recipes = RecipeRepository(db)
    app.state.db = db
    app.state.llm = llm or RecipeLLM(cfg)
    app.state.videos = videos or YouTubeClient(cfg)
    app.state.verifier = verifier or TokenVerifier(cfg)
    app.state.resolver = RecipeResolver(recipes, app.state.llm, cfg.RECIPE_FRESHNESS_HOURS)
    app.state.likes = LikeService(recipes, LikeRepository(db))

def create_app(cfg: Settings = settings) -> FastAPI:
    app = FastAPI(title="Recipe Discovery - API", version="0.1.0")

    # CORS: 프론트 개발 서버 허용
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 앱 시작/종료 이벤트 핸들러
    @app.on_event("startup")
    async def on_startup() -> None:
        # 1) DB 먼저 붙는다 (최대 20회, 1초 간격)
        db = None
        for i in range(DB_INIT_RETRIES):
            try:
                db = await init_db(cfg.MONGO_URI, cfg.MONGO_DB)
                log.info("[startup] db ready")
                break
            except Exception as e:
                log.warning("[startup] db init retry %d: %s", i + 1, e)
                await sleep(1.0)
        if db is None:
            raise RuntimeError("MongoDB init failed after retries")

        # 2) 인덱스 보장
        try:
            await ensure_indexes(db)
            log.info("[startup] indexes ensured")
        except Exception as e:
            log.exception("[startup] ensure_indexes failed: %s", e)

        # 3) 어댑터 구성
        attach_services(app, db, cfg)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        videos = getattr(app.state, "videos", None)
        if videos is not None:
            await videos.aclose()
        await close_db()

    @app.get("/health", response_model=HealthOut)
    async def health():
        ok = HealthOut(
            status="ok",
            message="Recipe API is running",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        db = getattr(app.state, "db", None)
        if db is not None:
            try:
                await db.command("ping")
                ok.db = "ok"
            except Exception as e:
                ok.db = f"error: {e}"
        return ok

    # 라우터 prefix는 각 파일 내에서 정의함 , 중복 prefix 금지
    app.include_router(recipes_router)
    app.include_router(popular_router)
    app.include_router(users_router)
    return app

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
