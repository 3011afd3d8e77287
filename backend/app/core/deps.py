# 공용 의존성 (app.state에 올려 둔 서비스 꺼내기, Bearer 인증)
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import AuthError, TokenVerifier
from app.services.likes import LikeService
from app.services.llm import RecipeLLM
from app.services.resolver import RecipeResolver
from app.services.youtube import YouTubeClient

# auto_error=False: 헤더 없을 때 403 대신 아래에서 401로 응답
_bearer = HTTPBearer(auto_error=False)

def get_resolver(request: Request) -> RecipeResolver:
    return request.app.state.resolver

def get_likes(request: Request) -> LikeService:
    return request.app.state.likes

def get_llm(request: Request) -> RecipeLLM:
    return request.app.state.llm

def get_videos(request: Request) -> YouTubeClient:
    return request.app.state.videos

def get_verifier(request: Request) -> TokenVerifier:
    return request.app.state.verifier

def get_current_user_id(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    verifier: TokenVerifier = Depends(get_verifier),
) -> str:
    # 헤더 없거나 Bearer 아님 → 401
    if creds is None or creds.scheme.lower() != "bearer" or not creds.credentials:
        raise HTTPException(status_code=401, detail="No valid authorization token provided")
    try:
        return verifier.verify(creds.credentials)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
