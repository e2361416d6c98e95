import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import InvalidTokenError, TokenExpiredError, decode_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a User row"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token required")

    try:
        payload = decode_jwt_token(credentials.credentials)
    except TokenExpiredError as e:
        raise HTTPException(status_code=401, detail="Token expired") from e
    except InvalidTokenError as e:
        raise HTTPException(status_code=401, detail="Invalid token") from e

    user_id = payload.get("userId")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token references missing user_id: {user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    return user


def require_roles(*roles: str):
    """
    Build a dependency that only lets the listed roles through.

    Example:
        router = APIRouter(dependencies=[Depends(require_roles("ADMIN"))])
    """

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(
                f"🚫 User {current_user.id} ({current_user.role}) denied, requires {roles}"
            )
            raise HTTPException(status_code=403, detail="Access denied. Insufficient permissions.")
        return current_user

    return role_checker


require_admin = require_roles("ADMIN")


def ensure_owner_or_admin(user: User, owner_id: int) -> None:
    """Ownership policy for user-owned records; administrators may access anything"""
    if user.is_admin or user.id == owner_id:
        return
    raise HTTPException(status_code=403, detail="Access denied")
