"""JWT session tokens for LearnHub users"""

import jwt
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, NamedTuple, Optional
from config import settings


class SessionClaims(NamedTuple):
    user_id: int
    role: Optional[str]
    token_id: Optional[str]


class JWTManager:
    """Issues and checks the HS256 bearer tokens handed out by /api/auth"""

    algorithm = "HS256"
    audience = "session"
    issuer = "learnhub-api"

    def __init__(self, secret: Optional[str] = None, expires_hours: Optional[int] = None):
        self.secret = secret or settings.SESSION_SECRET
        self.expires_hours = expires_hours if expires_hours is not None else settings.SESSION_EXPIRE_HOURS

    def create_session_token(self, user_id: int, role: str, expires_hours: Optional[int] = None) -> str:
        """
        Sign a token for a user who just logged in or registered.

        ``role`` is informational; authorization re-reads the stored user.
        A negative ``expires_hours`` yields an already expired token.
        """
        issued_at = datetime.now(timezone.utc)
        lifetime = timedelta(hours=self.expires_hours if expires_hours is None else expires_hours)
        claims = {
            "sub": str(user_id),
            "role": role,
            "jti": uuid.uuid4().hex,
            "iat": issued_at,
            "exp": issued_at + lifetime,
            "aud": self.audience,
            "iss": self.issuer,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify_session_token(self, token: str) -> Optional[Dict]:
        """Decoded claims, or None for a bad signature, audience, issuer or expiry"""
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except jwt.InvalidTokenError:
            return None

    def session_claims(self, token: str) -> Optional[SessionClaims]:
        payload = self.verify_session_token(token)
        if not payload:
            return None
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return SessionClaims(user_id=user_id, role=payload.get("role"), token_id=payload.get("jti"))

    def user_id_from_token(self, token: str) -> Optional[int]:
        claims = self.session_claims(token)
        return claims.user_id if claims else None


jwt_manager = JWTManager()
