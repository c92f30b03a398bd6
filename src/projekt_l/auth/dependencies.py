"""Authentication dependencies for FastAPI."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .jwt_auth import get_jwt_manager
from ..db.database import get_db
from ..db.models import User
from ..utils.logging_config import get_logger

logger = get_logger("auth")

# Security scheme for Bearer token; auto_error off so missing tokens get 401
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from a JWT access token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or its user is gone
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = get_jwt_manager().extract_user_id(credentials.credentials)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.warning(f"Token for unknown user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
