"""
Authentication context middleware
Reads the bearer session token of every request without enforcing it;
the dependencies in utils.auth_dependencies decide what a route requires.
"""

from fastapi import Request
from typing import Optional

from utils.jwt_utils import SessionClaims, jwt_manager
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("auth.middleware")

BEARER_PREFIX = "Bearer "


class TokenError(Exception):
    """Malformed Authorization header"""


class AuthContext:
    """Who is calling, as far as the session token says; anonymous by default"""

    def __init__(self, claims: Optional[SessionClaims] = None):
        self.user_id: Optional[int] = claims.user_id if claims else None
        self.role: Optional[str] = claims.role if claims else None
        self.token_id: Optional[str] = claims.token_id if claims else None

    @property
    def auth_method(self) -> Optional[str]:
        return "session" if self.user_id is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


def extract_bearer_token(authorization: str) -> str:
    """Return the token part of a ``Bearer <token>`` header"""
    if not authorization:
        raise TokenError("Authorization header missing")
    if not authorization.startswith(BEARER_PREFIX):
        raise TokenError("Invalid authorization header format. Expected 'Bearer <token>'")
    return authorization[len(BEARER_PREFIX):].strip()


def resolve_auth_context(authorization: Optional[str]) -> AuthContext:
    if not authorization:
        return AuthContext()

    try:
        token = extract_bearer_token(authorization)
    except TokenError as e:
        logger.debug(f"Ignoring Authorization header: {e}", category=LogCategory.AUTHENTICATION)
        return AuthContext()

    claims = jwt_manager.session_claims(token)
    if claims is None:
        logger.debug("Ignoring invalid or expired session token", category=LogCategory.AUTHENTICATION)
    return AuthContext(claims)


async def add_auth_context_to_request(request: Request, call_next):
    """Attach an AuthContext to ``request.state.auth`` and report the method used"""
    auth_context = resolve_auth_context(request.headers.get("Authorization"))
    request.state.auth = auth_context

    response = await call_next(request)
    if auth_context.auth_method:
        response.headers["X-Auth-Method"] = auth_context.auth_method
    return response


def get_auth_context(request: Request) -> AuthContext:
    return getattr(request.state, "auth", None) or AuthContext()
