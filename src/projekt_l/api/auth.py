"""Authentication API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError

from ..auth.dependencies import get_current_user
from ..auth.jwt_auth import get_jwt_manager
from ..auth.security import hash_password, validate_password, verify_password
from ..core.progression import ProgressionEngine
from ..db.models import User
from ..domain.xp import level_from_xp, level_tier, progress_to_next_level, total_xp_for_level
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import ProblemDetailsException, bad_request
from .schemas import (
    LoginRequest,
    ProblemDetails,
    RegisterRequest,
    TokenPairResponse,
    TokenRefreshRequest,
    TokenRefreshResponse,
    UserProfileResponse,
)

router = APIRouter(prefix="/v1/auth", tags=["auth"])
logger = get_logger("auth")


def _token_pair(user: User) -> TokenPairResponse:
    access_token, refresh_token, access_expires_at, refresh_expires_at = (
        get_jwt_manager().create_tokens(user.id, user.email)
    )
    return TokenPairResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        access_expires_at=access_expires_at,
        refresh_expires_at=refresh_expires_at,
        user_id=user.id,
    )


@router.post(
    "/register",
    response_model=TokenPairResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Account created"},
        400: {"model": ProblemDetails, "description": "Password rejected"},
        409: {"model": ProblemDetails, "description": "Email already registered"},
        422: {"model": ProblemDetails, "description": "Validation error"},
    },
)
async def register(
    data: RegisterRequest,
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> TokenPairResponse:
    """
    Create an account and its game profile.

    Besides the user row this creates the currency wallet and zeroed stats
    for every faction, then returns a token pair so the client is logged in.
    """
    repos = engine.repos
    try:
        validate_password(data.password)
    except ValueError as e:
        raise bad_request(str(e))

    if await repos.user.get_by_email(data.email):
        raise ProblemDetailsException(
            status_code=status.HTTP_409_CONFLICT,
            title="Email Already Registered",
            detail=f"An account for {data.email.lower()} already exists",
        )

    salt, password_hash = hash_password(data.password)
    try:
        user = await repos.user.create(
            email=data.email,
            display_name=data.display_name,
            password_salt=salt,
            password_hash=password_hash,
        )
        await engine.create_user_profile(user)
        await repos.commit()
    except IntegrityError:
        # concurrent registration with the same email
        await repos.rollback()
        raise ProblemDetailsException(
            status_code=status.HTTP_409_CONFLICT,
            title="Email Already Registered",
            detail=f"An account for {data.email.lower()} already exists",
        )

    logger.info(f"Registered user {user.id}")
    return _token_pair(user)


@router.post(
    "/login",
    response_model=TokenPairResponse,
    responses={
        200: {"description": "Login successful"},
        401: {"model": ProblemDetails, "description": "Invalid credentials"},
        422: {"model": ProblemDetails, "description": "Validation error"},
    },
)
async def login(
    data: LoginRequest,
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> TokenPairResponse:
    """Authenticate with email and password and return a JWT token pair."""
    user = await engine.repos.user.get_by_email(data.email)
    if user is None or not verify_password(data.password, user.password_salt, user.password_hash):
        logger.warning(f"Failed login for {data.email.lower()}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User {user.id} logged in")
    return _token_pair(user)


@router.post(
    "/refresh",
    response_model=TokenRefreshResponse,
    responses={
        200: {"description": "Token refreshed successfully"},
        401: {"model": ProblemDetails, "description": "Invalid or expired refresh token"},
        422: {"model": ProblemDetails, "description": "Validation error"},
    },
)
async def refresh_token(
    data: TokenRefreshRequest,
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> TokenRefreshResponse:
    """Exchange a valid refresh token for a new access token."""
    jwt_manager = get_jwt_manager()
    payload = jwt_manager.verify_refresh_token(data.refresh_token)
    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        user_id = None
    if user_id is None or await engine.repos.user.get_by_id(user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token, expires_at = jwt_manager.refresh_access_token(data.refresh_token)
    return TokenRefreshResponse(
        access_token=access_token, token_type="bearer", expires_at=expires_at
    )


@router.get(
    "/me",
    response_model=UserProfileResponse,
    responses={
        200: {"description": "Profile of the authenticated user"},
        401: {"model": ProblemDetails, "description": "Not authenticated"},
    },
)
def get_me(current_user: User = Depends(get_current_user)) -> UserProfileResponse:
    total_xp = current_user.total_xp or 0
    level = level_from_xp(total_xp)
    return UserProfileResponse(
        id=current_user.id,
        email=current_user.email,
        display_name=current_user.display_name,
        total_xp=total_xp,
        level=level,
        progress=progress_to_next_level(level, total_xp - total_xp_for_level(level)),
        tier=level_tier(level),
        created_at=current_user.created_at,
    )
