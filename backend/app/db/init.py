# app/db/init.py
# Mongo 연결 유틸: motor (on_event용)

from __future__ import annotations
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import settings

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None

async def init_db(uri: str | None = None, name: str | None = None) -> AsyncIOMotorDatabase:
    # 앱 시작 시 1회 호출해서 전역 커넥션 구성
    global _client, _db
    if _db is not None:
        return _db

    _client = AsyncIOMotorClient(uri or settings.MONGO_URI)
    db = _client[name or settings.MONGO_DB]

    # 연결 확인 (준비 안 됐으면 예외)
    await db.command("ping")
    _db = db
    return _db

async def close_db() -> None:
    # 앱 종료 시 커넥션 정리
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
