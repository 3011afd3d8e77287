# Bearer 토큰 검증: 외부 인증 서버가 발급한 JWT → 사용자 id
import jwt

from app.core.config import Settings

# 인증 서버마다 사용자 id 클레임 이름이 다름
USER_ID_CLAIMS = ("uid", "user_id")

class AuthError(Exception):
    pass

class TokenVerifier:
    def __init__(self, settings: Settings) -> None:
        self.secret = settings.AUTH_SECRET_KEY
        self.algorithm = settings.AUTH_ALGORITHM
        self.user_claim = settings.AUTH_USER_CLAIM

    def verify(self, token: str) -> str:
        """토큰 검증 후 사용자 id 반환. 만료/위조/클레임 누락은 AuthError"""
        if not self.secret:
            raise AuthError("Authentication is not configured")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid authorization token")

        for claim in (self.user_claim, *USER_ID_CLAIMS):
            uid = payload.get(claim)
            if isinstance(uid, str) and uid:
                return uid
        raise AuthError("Token has no user id")
