"""
Authentication Router
Registration, login and session introspection with JWT bearer tokens
"""

from fastapi import APIRouter, Depends, Request, status

from models import User, UserRole
from schemas.validation import LoginRequest, ProfileUpdateRequest, RegisterRequest
from storage import Storage, get_storage
from utils.auth_dependencies import get_current_user
from utils.auth_middleware import get_auth_context
from utils.course_assembly import serialize_user
from utils.error_handling import AuthenticationError, ValidationError
from utils.jwt_utils import jwt_manager
from utils.passwords import hash_password, verify_password
from utils.structured_logging import get_logger, log_authentication_event

logger = get_logger("routes.auth")

router = APIRouter()


def _session_response(user: User) -> dict:
    token = jwt_manager.create_session_token(user.id, user.role.value)
    return {"user": serialize_user(user), "token": token, "tokenType": "bearer"}


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register a new account")
async def register(payload: RegisterRequest, storage: Storage = Depends(get_storage)):
    if storage.get_user_by_username(payload.username):
        raise ValidationError("Username already exists", field="username")
    if payload.email and storage.get_user_by_email(payload.email):
        raise ValidationError("Email already registered", field="email")

    user = storage.create_user(
        username=payload.username,
        password=hash_password(payload.password),
        email=payload.email,
        display_name=payload.displayName or payload.username,
        role=UserRole.USER,
    )
    log_authentication_event("register", user_id=user.id)
    return _session_response(user)


@router.post("/login", summary="Log in with username and password")
async def login(payload: LoginRequest, storage: Storage = Depends(get_storage)):
    user = storage.get_user_by_username(payload.username.strip())
    if user is None or not verify_password(payload.password, user.password):
        log_authentication_event("login", success=False, details={"username": payload.username})
        raise AuthenticationError("Invalid username or password")

    log_authentication_event("login", user_id=user.id)
    return _session_response(user)


@router.post("/logout", summary="End the current session")
async def logout(request: Request):
    # Tokens are stateless; the client discards its copy
    auth_context = get_auth_context(request)
    if auth_context.user_id is not None:
        log_authentication_event("logout", user_id=auth_context.user_id, method="session")
    return {"success": True}


@router.get("/user", summary="Current user")
async def read_current_user(current_user: User = Depends(get_current_user)):
    return serialize_user(current_user)


@router.patch("/user", summary="Update profile or password")
async def update_current_user(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    fields = {}
    if payload.displayName is not None:
        fields["display_name"] = payload.displayName.strip() or current_user.username
    if payload.avatarUrl is not None:
        fields["avatar_url"] = payload.avatarUrl
    if payload.email is not None and payload.email != current_user.email:
        other = storage.get_user_by_email(payload.email)
        if other is not None and other.id != current_user.id:
            raise ValidationError("Email already registered", field="email")
        fields["email"] = payload.email

    if payload.newPassword is not None:
        if not payload.currentPassword or not verify_password(payload.currentPassword, current_user.password):
            raise ValidationError("Current password is incorrect", field="currentPassword")
        fields["password"] = hash_password(payload.newPassword)

    user = storage.update_user(current_user.id, **fields) if fields else current_user
    logger.info("Profile updated", user_id=current_user.id, extra={"fields": sorted(fields)})
    return serialize_user(user)
