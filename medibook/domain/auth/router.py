"""Auth router - registration, login and token refresh endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...shared.responses import success_response
from .schemas import LoginRequest, RefreshRequest, RegisterRequest
from .service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

# Brute-force protection on credential endpoints
auth_rate_limiter = create_rate_limiter(limit=20, window_seconds=900, key_prefix="auth")


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post("/register", status_code=201, dependencies=[Depends(auth_rate_limiter)])
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return success_response(data=service.register(data), message="User registered successfully")


@router.post("/login", dependencies=[Depends(auth_rate_limiter)])
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return success_response(data=service.login(data), message="Login successful")


@router.post("/refresh")
async def refresh(data: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    return success_response(data=service.refresh(data.refresh_token))
